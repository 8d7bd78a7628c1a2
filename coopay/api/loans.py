from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from coopay.db.base import get_db
from coopay.core.dependencies import RequestContext, require_any_user, require_manager, require_staff
from coopay.core.exceptions import ReconciliationError
from coopay.schemas.loan import LoanCreate, LoanResponse, LoanTransactionResponse
from coopay.services import loan as loan_service
from coopay.services.ledger import get_member

router = APIRouter(prefix="/loans", tags=["loans"])


@router.post("", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
def create_loan(
    payload: LoanCreate,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Extend a loan; the amount owed includes interest."""
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    try:
        return loan_service.create_loan(
            db=db,
            member_id=payload.user_id,
            cooperative_id=cooperative_id,
            principal_amount=payload.amount,
            interest_rate=payload.interest_rate,
            season_id=payload.season_id,
            created_by=context.user.id
        )
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[LoanResponse])
def get_loans(
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    return loan_service.list_loans(db, context.resolve_cooperative())


@router.get("/{loan_id}/transactions", response_model=List[LoanTransactionResponse])
def get_loan_transactions(
    loan_id: UUID,
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    try:
        return loan_service.get_loan_transactions(db, loan_id, context.resolve_cooperative())
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{user_id}", response_model=List[LoanResponse])
def get_member_loans(
    user_id: UUID,
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    cooperative_id = context.resolve_cooperative()
    member_id = context.resolve_member(user_id)
    try:
        get_member(db, member_id, cooperative_id)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return loan_service.list_loans(db, cooperative_id, member_id=member_id)
