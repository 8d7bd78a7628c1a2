import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.exceptions import NotFoundError, ValidationError
from coopay.core.money import quantize
from coopay.models.fees import Fee, FeeStatus, FeeType, FeeTypeStatus
from coopay.models.user import User, UserRoleEnum
from coopay.services.ledger import get_cooperative, get_member
from coopay.services.season import get_active_season, resolve_season_scope

logger = logging.getLogger(__name__)


def _assign_fee_type(db: Session, fee_type: FeeType, season_id: Optional[UUID]) -> int:
    """Create one unpaid fee per active member who does not have it yet."""
    members = db.query(User).filter(
        User.cooperative_id == fee_type.cooperative_id,
        User.role == UserRoleEnum.MEMBER,
        User.is_active == True  # noqa: E712
    ).all()
    if not members:
        logger.warning(f"No members found to assign fee type {fee_type.name}")
        return 0

    query = db.query(Fee.member_id).filter(Fee.fee_type_id == fee_type.id)
    if season_id is None:
        query = query.filter(Fee.season_id.is_(None))
    else:
        query = query.filter(Fee.season_id == season_id)
    already_assigned = {row[0] for row in query.all()}

    created = 0
    for member in members:
        if member.id in already_assigned:
            continue
        db.add(Fee(
            member_id=member.id,
            cooperative_id=fee_type.cooperative_id,
            season_id=season_id,
            fee_type_id=fee_type.id,
            amount_owed=fee_type.amount,
            amount_paid=Decimal("0.00"),
            status=FeeStatus.UNPAID
        ))
        created += 1
    db.flush()
    return created


def assign_fee_to_members(db: Session, fee_type_id: UUID, season_id: UUID = None, cooperative_id: UUID = None) -> int:
    """Assign a fee type to every member of its cooperative (idempotent)."""
    query = db.query(FeeType).filter(FeeType.id == fee_type_id)
    if cooperative_id is not None:
        query = query.filter(FeeType.cooperative_id == cooperative_id)
    fee_type = query.first()
    if not fee_type:
        raise NotFoundError("Fee type not found")
    if fee_type.is_per_season and season_id is None:
        raise ValidationError("Season ID must be provided for per-season fees")
    if season_id is not None:
        resolve_season_scope(db, fee_type.cooperative_id, season_id)

    created = _assign_fee_type(db, fee_type, season_id if fee_type.is_per_season else None)
    db.commit()
    return created


def apply_seasonal_fee_types(db: Session, cooperative_id: UUID, season_id: UUID) -> int:
    """Assign every active auto-apply per-season fee type for a season. Does not commit."""
    fee_types = db.query(FeeType).filter(
        FeeType.cooperative_id == cooperative_id,
        FeeType.status == FeeTypeStatus.ACTIVE,
        FeeType.is_per_season == True,  # noqa: E712
        FeeType.auto_apply_on_create == True  # noqa: E712
    ).all()
    return sum(_assign_fee_type(db, fee_type, season_id) for fee_type in fee_types)


def apply_auto_fees_to_member(db: Session, member: User) -> int:
    """Give a newly created member the cooperative's auto-apply fees. Does not commit."""
    fee_types = db.query(FeeType).filter(
        FeeType.cooperative_id == member.cooperative_id,
        FeeType.status == FeeTypeStatus.ACTIVE,
        FeeType.auto_apply_on_create == True  # noqa: E712
    ).all()
    if not fee_types:
        return 0

    active = get_active_season(db, member.cooperative_id)
    created = 0
    for fee_type in fee_types:
        if fee_type.is_per_season and not active:
            continue
        db.add(Fee(
            member_id=member.id,
            cooperative_id=member.cooperative_id,
            season_id=active.id if fee_type.is_per_season else None,
            fee_type_id=fee_type.id,
            amount_owed=fee_type.amount,
            amount_paid=Decimal("0.00"),
            status=FeeStatus.UNPAID
        ))
        created += 1
    db.flush()
    return created


def list_fee_types(db: Session, cooperative_id: UUID):
    return db.query(FeeType).filter(
        FeeType.cooperative_id == cooperative_id
    ).order_by(FeeType.created_at.asc()).all()


def list_fees(db: Session, cooperative_id: UUID, member_id: UUID = None, season_id: UUID = None):
    query = db.query(Fee).filter(Fee.cooperative_id == cooperative_id)
    if member_id is not None:
        query = query.filter(Fee.member_id == member_id)
    if season_id is not None:
        query = query.filter(Fee.season_id == season_id)
    return query.order_by(Fee.created_at.asc(), Fee.id.asc()).all()


def create_fee_type(
    db: Session,
    cooperative_id: UUID,
    name: str,
    amount: Decimal,
    description: str = None,
    is_per_season: bool = True,
    auto_apply_on_create: bool = True
) -> FeeType:
    """
    Create a fee type.

    Auto-apply fee types are assigned right away: non-seasonal ones once per
    member, seasonal ones for the cooperative's active season (if any).
    """
    get_cooperative(db, cooperative_id)
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    amount = quantize(amount)
    if amount < 0:
        raise ValidationError("Amount cannot be negative")

    existing = db.query(FeeType).filter(
        FeeType.cooperative_id == cooperative_id,
        FeeType.name == name
    ).first()
    if existing:
        raise ValidationError("Fee type already exists")

    fee_type = FeeType(
        cooperative_id=cooperative_id,
        name=name,
        amount=amount,
        description=description,
        status=FeeTypeStatus.ACTIVE,
        is_per_season=is_per_season,
        auto_apply_on_create=auto_apply_on_create
    )
    db.add(fee_type)
    db.flush()

    if auto_apply_on_create:
        if not is_per_season:
            created = _assign_fee_type(db, fee_type, None)
        else:
            active = get_active_season(db, cooperative_id)
            created = _assign_fee_type(db, fee_type, active.id) if active else 0
        logger.info(f"Fee type {name} auto-applied to {created} member(s)")

    db.commit()
    db.refresh(fee_type)
    return fee_type


def assign_fee_to_member(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    fee_type_id: UUID,
    season_id: UUID = None
) -> Fee:
    """Manually assign a fee type to one member."""
    get_member(db, member_id, cooperative_id)
    fee_type = db.query(FeeType).filter(
        FeeType.id == fee_type_id,
        FeeType.cooperative_id == cooperative_id
    ).first()
    if not fee_type:
        raise NotFoundError("Fee type not found in this cooperative")

    if fee_type.is_per_season:
        season_id = resolve_season_scope(db, cooperative_id, season_id)
        if season_id is None:
            raise ValidationError("Season ID must be provided for per-season fees")
    else:
        season_id = None

    query = db.query(Fee).filter(Fee.member_id == member_id, Fee.fee_type_id == fee_type_id)
    query = query.filter(Fee.season_id == season_id) if season_id else query.filter(Fee.season_id.is_(None))
    if query.first():
        raise ValidationError("Fee already assigned to this member")

    fee = Fee(
        member_id=member_id,
        cooperative_id=cooperative_id,
        season_id=season_id,
        fee_type_id=fee_type_id,
        amount_owed=fee_type.amount,
        amount_paid=Decimal("0.00"),
        status=FeeStatus.UNPAID
    )
    db.add(fee)
    db.commit()
    db.refresh(fee)
    return fee
