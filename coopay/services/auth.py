import logging
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coopay.core.config import settings
from coopay.core.exceptions import ValidationError
from coopay.core.security import create_access_token, get_password_hash, verify_password
from coopay.models.user import User, UserRoleEnum
from coopay.services.ledger import get_cooperative

logger = logging.getLogger(__name__)


def authenticate_user(db: Session, phone_number: str, password: str) -> Optional[User]:
    """
    Authenticate a user by phone number and password.

    Returns:
        User object if authentication succeeds, None otherwise
    """
    user = db.query(User).filter(User.phone_number == phone_number).first()
    if not user:
        logger.debug(f"User not found: {phone_number}")
        return None

    if not verify_password(password, user.password_hash):
        logger.debug(f"Password verification failed for user: {phone_number}")
        return None

    if not user.is_active:
        logger.debug(f"User {phone_number} is inactive, login denied")
        return None

    return user


def create_user(
    db: Session,
    names: str,
    phone_number: str,
    password: str,
    role: UserRoleEnum = UserRoleEnum.MEMBER,
    cooperative_id: UUID = None,
    email: str = None,
    apply_fees: bool = True
) -> User:
    """Create a user. Everyone except a superadmin belongs to a cooperative.

    New members receive the cooperative's auto-apply fees: non-seasonal ones
    and the per-season ones of the active season.
    """
    if role == UserRoleEnum.SUPERADMIN:
        cooperative_id = None
    elif cooperative_id is None:
        raise ValidationError("Cooperative ID is required")
    else:
        get_cooperative(db, cooperative_id)

    if not password or len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")

    existing = db.query(User).filter(User.phone_number == phone_number).first()
    if existing:
        logger.warning(f"Registration attempt with existing phone number: {phone_number}")
        raise ValidationError("Phone number already registered")

    user = User(
        names=names,
        phone_number=phone_number,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        cooperative_id=cooperative_id,
        is_active=True
    )
    db.add(user)

    try:
        db.flush()
        if apply_fees and role == UserRoleEnum.MEMBER:
            from coopay.services.fees import apply_auto_fees_to_member
            created = apply_auto_fees_to_member(db, user)
            if created:
                logger.info(f"Applied {created} auto fee(s) to new member {user.id}")
        db.commit()
    except IntegrityError as e:
        db.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"IntegrityError creating user: {error_msg}", exc_info=True)
        if 'email' in error_msg.lower():
            raise ValidationError("Email already registered")
        raise ValidationError("Phone number already registered")

    db.refresh(user)
    logger.info(f"Created {role.value} {user.id}")
    return user


def list_users(db: Session, cooperative_id: UUID = None, role: UserRoleEnum = None) -> List[User]:
    query = db.query(User)
    if cooperative_id is not None:
        query = query.filter(User.cooperative_id == cooperative_id)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.asc()).all()


def create_access_token_for_user(user: User) -> str:
    """Create access token for user."""
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_access_token(
        data={
            "sub": str(user.id),
            "role": user.role.value,
            "cooperative_id": str(user.cooperative_id) if user.cooperative_id else None
        },
        expires_delta=access_token_expires
    )
