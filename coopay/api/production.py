from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from coopay.db.base import get_db
from coopay.core.dependencies import RequestContext, require_any_user, require_manager, require_staff
from coopay.core.exceptions import ReconciliationError
from coopay.schemas.production import ProductCreate, ProductResponse, ProductionCreate, ProductionResponse
from coopay.services import production as production_service

router = APIRouter(tags=["production"])


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        return production_service.create_product(db, cooperative_id, payload.product_name, payload.unit_price)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/products", response_model=List[ProductResponse])
def get_products(
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    return production_service.list_products(db, context.resolve_cooperative())


@router.post("/productions", response_model=ProductionResponse, status_code=status.HTTP_201_CREATED)
def record_production(
    payload: ProductionCreate,
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Record a member's delivery for a season (the active one by default)."""
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        return production_service.record_production(
            db=db,
            member_id=payload.user_id,
            cooperative_id=cooperative_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            unit_price=payload.unit_price,
            season_id=payload.season_id
        )
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/productions", response_model=List[ProductionResponse])
def get_productions(
    user_id: Optional[UUID] = Query(None, alias="userId"),
    season_id: Optional[UUID] = Query(None, alias="seasonId"),
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    cooperative_id = context.resolve_cooperative()
    member_id = context.resolve_member(user_id, required=False)
    return production_service.list_productions(db, cooperative_id, member_id=member_id, season_id=season_id)
