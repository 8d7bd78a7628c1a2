from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from coopay.db.base import get_db
from coopay.models.user import User, UserRoleEnum
from coopay.core.security import decode_access_token
import uuid

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

STAFF_ROLES = (UserRoleEnum.SUPERADMIN, UserRoleEnum.MANAGER, UserRoleEnum.ACCOUNTANT)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id_str: str = payload.get("sub")
    if user_id_str is None:
        raise credentials_exception

    # Convert string UUID to UUID object
    try:
        user_id = uuid.UUID(user_id_str)
    except (ValueError, TypeError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def _parse_uuid(value, field_name: str) -> Optional[uuid.UUID]:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field_name}"
        )


@dataclass
class RequestContext:
    """Who is calling and which cooperative/member they may act on.

    Non-superadmins are pinned to their own cooperative and members to
    themselves, so route handlers never branch on role.
    """
    user: User
    role: UserRoleEnum
    cooperative_id: Optional[uuid.UUID]
    member_id: Optional[uuid.UUID]

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRoleEnum.SUPERADMIN

    def resolve_cooperative(self, requested=None) -> uuid.UUID:
        """Cooperative to act on, given an optional ID from the request body."""
        requested = _parse_uuid(requested, "cooperative ID")
        if requested is not None and not self.is_superadmin and requested != self.cooperative_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied to this cooperative"
            )
        cooperative_id = requested or self.cooperative_id
        if cooperative_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cooperative ID is required"
            )
        return cooperative_id

    def resolve_member(self, requested=None, required: bool = True) -> Optional[uuid.UUID]:
        """Member to act on. Members can only ever act on themselves."""
        requested = _parse_uuid(requested, "user ID")
        if self.member_id is not None:
            if requested is not None and requested != self.member_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Members can only access their own records"
                )
            return self.member_id
        if requested is None and required:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User ID is required"
            )
        return requested


async def get_request_context(
    request: Request,
    current_user: User = Depends(get_current_user)
) -> RequestContext:
    """Build the request context from the token and the x-cooperative-id header or cooperativeId query."""
    requested = _parse_uuid(
        request.headers.get("x-cooperative-id") or request.query_params.get("cooperativeId"),
        "cooperative ID"
    )

    if current_user.role == UserRoleEnum.SUPERADMIN:
        cooperative_id = requested
    else:
        if requested is not None and requested != current_user.cooperative_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied to this cooperative"
            )
        cooperative_id = current_user.cooperative_id

    return RequestContext(
        user=current_user,
        role=current_user.role,
        cooperative_id=cooperative_id,
        member_id=current_user.id if current_user.role == UserRoleEnum.MEMBER else None
    )


def require_roles(*roles: UserRoleEnum):
    """Dependency factory for requiring any of the specified roles."""
    async def role_checker(
        context: RequestContext = Depends(get_request_context)
    ) -> RequestContext:
        if context.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User does not have any of the required roles: {', '.join(r.value for r in roles)}"
            )
        return context
    return role_checker


# Role-specific dependencies
require_superadmin = require_roles(UserRoleEnum.SUPERADMIN)
require_manager = require_roles(UserRoleEnum.SUPERADMIN, UserRoleEnum.MANAGER)
require_staff = require_roles(*STAFF_ROLES)
require_any_user = require_roles(*STAFF_ROLES, UserRoleEnum.MEMBER)
