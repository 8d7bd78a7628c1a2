from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from coopay.db.base import get_db
from coopay.core.dependencies import RequestContext, require_manager, require_staff
from coopay.core.exceptions import ReconciliationError
from coopay.models.user import UserRoleEnum
from coopay.schemas.auth import UserCreate, UserResponse
from coopay.services.auth import create_user, list_users

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_cooperative_user(
    payload: UserCreate,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Create a user. Managers create staff and members of their own cooperative."""
    if payload.role == UserRoleEnum.SUPERADMIN and not context.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only a superadmin can create another superadmin"
        )
    cooperative_id = None
    if payload.role != UserRoleEnum.SUPERADMIN:
        cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        return create_user(
            db=db,
            names=payload.names,
            phone_number=payload.phone_number,
            password=payload.password,
            role=payload.role,
            cooperative_id=cooperative_id,
            email=payload.email
        )
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[UserResponse])
def get_users(
    role: Optional[UserRoleEnum] = Query(None),
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Users of the cooperative (all users for a superadmin without a cooperative)."""
    cooperative_id = context.cooperative_id
    return list_users(db, cooperative_id=cooperative_id, role=role)
