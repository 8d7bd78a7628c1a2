from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from coopay.db.base import get_db
from coopay.core.dependencies import RequestContext, require_any_user, require_manager, require_staff
from coopay.core.exceptions import ReconciliationError
from coopay.schemas.payment import (
    PaymentProcessRequest,
    PaymentResponse,
    PaymentSummaryResponse,
    PaymentTransactionResponse,
    PaymentWithTransactions,
)
from coopay.services import payment as payment_service
from coopay.services.ledger import get_member

router = APIRouter(prefix="/payments", tags=["payments"])
transactions_router = APIRouter(prefix="/paymentTransactions", tags=["payments"])


@router.get("/summary", response_model=PaymentSummaryResponse)
def get_payment_summary(
    user_id: Optional[UUID] = Query(None, alias="userId"),
    season_id: Optional[UUID] = Query(None, alias="seasonId"),
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    """What the member is owed now: ledger totals, any open partial payment, and the amount due."""
    cooperative_id = context.resolve_cooperative()
    member_id = context.resolve_member(user_id)
    try:
        details = payment_service.get_payment_summary(db, member_id, cooperative_id, season_id)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PaymentSummaryResponse.from_details(details)


@router.post("/process", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def process_payment(
    payload: PaymentProcessRequest,
    context: RequestContext = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Settle part or all of a member's amount due."""
    from coopay.core.audit import write_audit_log
    cooperative_id = context.resolve_cooperative(payload.cooperative_id)
    member_id = context.resolve_member(payload.user_id)
    try:
        payment = payment_service.settle(
            db=db,
            member_id=member_id,
            cooperative_id=cooperative_id,
            amount_paid=payload.amount_paid,
            season_id=payload.season_id,
            processed_by=context.user
        )
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    write_audit_log(
        user_name=context.user.names,
        user_role=context.role.value,
        action="Payment processed",
        details=(
            f"payment={payment.id}, member={member_id}, amount={payload.amount_paid}, "
            f"remaining={payment.amount_remaining_to_pay}, status={payment.status.value}"
        )
    )
    return payment


@router.get("", response_model=List[PaymentResponse])
def list_payments(
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    """Payments of the cooperative, newest first."""
    cooperative_id = context.resolve_cooperative()
    try:
        return payment_service.list_cooperative_payments(db, cooperative_id)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/details/{user_id}", response_model=List[PaymentWithTransactions])
def get_member_payment_details(
    user_id: UUID,
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    """A member's payments with their settlement transactions."""
    cooperative_id = context.resolve_cooperative()
    member_id = context.resolve_member(user_id)
    try:
        get_member(db, member_id, cooperative_id)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return payment_service.list_member_payments(db, member_id, cooperative_id)


@router.get("/{payment_id}", response_model=PaymentWithTransactions)
def get_payment(
    payment_id: UUID,
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    cooperative_id = context.resolve_cooperative()
    try:
        payment = payment_service.get_payment(db, payment_id, cooperative_id)
    except ReconciliationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    # Members only see their own payments
    context.resolve_member(payment.member_id)
    return payment


@transactions_router.get("", response_model=List[PaymentTransactionResponse])
def list_payment_transactions(
    context: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db)
):
    cooperative_id = context.resolve_cooperative()
    return payment_service.list_payment_transactions(db, cooperative_id)


@transactions_router.get("/{user_id}", response_model=List[PaymentTransactionResponse])
def list_member_payment_transactions(
    user_id: UUID,
    context: RequestContext = Depends(require_any_user),
    db: Session = Depends(get_db)
):
    cooperative_id = context.resolve_cooperative()
    member_id = context.resolve_member(user_id)
    return payment_service.list_payment_transactions(db, cooperative_id, member_id)
