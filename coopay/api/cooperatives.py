from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from coopay.db.base import get_db
from coopay.core.dependencies import RequestContext, require_any_user, require_manager, require_staff, require_superadmin
from coopay.core.exceptions import ReconciliationError
from coopay.schemas.cooperative import (
    CashDeposit,
    CashResponse,
    CooperativeCreate,
    CooperativeResponse,
    CurrentSeasonResponse,
    SeasonResponse,
)
from coopay.services import cash as cash_service
from coopay.services.cooperative import create_cooperative, list_cooperatives, list_seasons
from coopay.services.season import current_season_info, get_active_season, rollover_seasons

router = APIRouter(prefix="/cooperatives", tags=["cooperatives"])
seasons_router = APIRouter(prefix="/seasons", tags=["seasons"])
cash_router = APIRouter(prefix="/cash", tags=["cash"])


@router.post("", response_model=CooperativeResponse, status_code=status.HTTP_201_CREATED)
def create_new_cooperative(
    payload: CooperativeCreate,
    context: RequestContext = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    try:
        return create_cooperative(db, payload.name, payload.location)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[CooperativeResponse])
def get_cooperatives(
    context: RequestContext = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    return list_cooperatives(db)


@seasons_router.get("", response_model=List[SeasonResponse])
def get_seasons(
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    return list_seasons(db, context.resolve_cooperative())


@seasons_router.get("/current", response_model=CurrentSeasonResponse)
def get_current_season(
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    """Calendar season for today and the cooperative's active season."""
    name, year = current_season_info()
    active = get_active_season(db, context.cooperative_id) if context.cooperative_id else None
    return CurrentSeasonResponse(
        name=name,
        year=year,
        active_season=SeasonResponse.model_validate(active) if active else None
    )


@seasons_router.post("/rollover")
def run_rollover(
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Activate the current season for every cooperative and auto-apply seasonal fees."""
    from coopay.core.audit import write_audit_log
    activations = rollover_seasons(db)
    write_audit_log(
        user_name=context.user.names,
        user_role=context.role.value,
        action="Season rollover",
        details=f"activations={len(activations)}"
    )
    return {"activations": activations}


@cash_router.get("", response_model=CashResponse)
def get_cooperative_cash(
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    try:
        return cash_service.get_cash(db, context.resolve_cooperative())
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@cash_router.post("/deposit", response_model=CashResponse)
def deposit(
    payload: CashDeposit,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Add money to the cooperative's cash."""
    from coopay.core.audit import write_audit_log
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        cash = cash_service.deposit_cash(db, cooperative_id, payload.amount)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    write_audit_log(
        user_name=context.user.names,
        user_role=context.role.value,
        action="Cash deposit",
        details=f"cooperative={cooperative_id}, amount={payload.amount}, balance={cash.balance}"
    )
    return cash
