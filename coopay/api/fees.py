from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from coopay.db.base import get_db
from coopay.core.dependencies import RequestContext, require_any_user, require_manager, require_staff
from coopay.core.exceptions import ReconciliationError
from coopay.schemas.fees import FeeAssign, FeeResponse, FeeTypeCreate, FeeTypeResponse
from coopay.services import fees as fee_service

router = APIRouter(tags=["fees"])


@router.post("/fee-types", response_model=FeeTypeResponse, status_code=status.HTTP_201_CREATED)
def create_fee_type(
    payload: FeeTypeCreate,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Create a fee type; auto-apply fee types are assigned to members right away."""
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        return fee_service.create_fee_type(
            db=db,
            cooperative_id=cooperative_id,
            name=payload.name,
            amount=payload.amount,
            description=payload.description,
            is_per_season=payload.is_per_season,
            auto_apply_on_create=payload.auto_apply_on_create
        )
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/fee-types", response_model=List[FeeTypeResponse])
def get_fee_types(
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return fee_service.list_fee_types(db, context.resolve_cooperative())


@router.post("/fees", status_code=status.HTTP_201_CREATED)
def assign_fee(
    payload: FeeAssign,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Assign a fee type to one member, or to all members of the cooperative."""
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        if payload.user_id is not None:
            fee = fee_service.assign_fee_to_member(
                db=db,
                member_id=payload.user_id,
                cooperative_id=cooperative_id,
                fee_type_id=payload.fee_type_id,
                season_id=payload.season_id
            )
            return {"created": 1, "fee": FeeResponse.model_validate(fee).model_dump(by_alias=True, mode="json")}
        created = fee_service.assign_fee_to_members(
            db=db,
            fee_type_id=payload.fee_type_id,
            season_id=payload.season_id,
            cooperative_id=cooperative_id
        )
        return {"created": created}
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/fees", response_model=List[FeeResponse])
def get_fees(
    user_id: Optional[UUID] = Query(None, alias="userId"),
    season_id: Optional[UUID] = Query(None, alias="seasonId"),
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    """Fees of the cooperative; members only see their own."""
    cooperative_id = context.resolve_cooperative()
    member_id = context.resolve_member(user_id, required=False)
    return fee_service.list_fees(db, cooperative_id, member_id=member_id, season_id=season_id)
