import logging
from decimal import Decimal
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.exceptions import NotFoundError, ValidationError
from coopay.core.money import from_minor, is_whole_cents, quantize, to_minor
from coopay.models.loan import Loan, LoanStatus, LoanTransaction
from coopay.services.ledger import get_member
from coopay.services.season import resolve_season_scope

logger = logging.getLogger(__name__)


def compute_amount_owed(principal: Decimal, interest_rate: Decimal) -> Decimal:
    """Principal plus simple interest, rounded half-up to the minor unit."""
    principal = quantize(principal)
    rate = Decimal(str(interest_rate or 0))
    return quantize(principal * (1 + rate / 100))


def create_loan(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    principal_amount: Decimal,
    interest_rate: Decimal = Decimal("0"),
    season_id: UUID = None,
    created_by: UUID = None
) -> Loan:
    """Extend a loan to a member of the cooperative."""
    if not is_whole_cents(principal_amount):
        raise ValidationError("Amount must be a valid currency amount")
    principal = quantize(principal_amount)
    if principal <= 0:
        raise ValidationError("Loan amount must be positive")
    rate = Decimal(str(interest_rate or 0))
    if rate < 0:
        raise ValidationError("Interest rate cannot be negative")

    get_member(db, member_id, cooperative_id)
    if season_id is not None:
        resolve_season_scope(db, cooperative_id, season_id)

    loan = Loan(
        member_id=member_id,
        cooperative_id=cooperative_id,
        season_id=season_id,
        principal_amount=principal,
        interest_rate=rate,
        amount_owed=compute_amount_owed(principal, rate),
        amount_paid=Decimal("0.00"),
        status=LoanStatus.PENDING,
        created_by=created_by
    )
    db.add(loan)
    db.commit()
    db.refresh(loan)
    logger.info(f"Loan {loan.id} created for member {member_id}: owed={loan.amount_owed}")
    return loan


def record_loan_reduction(db: Session, loan: Loan, amount_minor: int, payment_id: UUID = None) -> LoanTransaction:
    """Write the transaction row for a loan reduction already applied to ``loan``. Does not commit."""
    remaining_minor = to_minor(loan.amount_owed) - to_minor(loan.amount_paid)
    transaction = LoanTransaction(
        loan_id=loan.id,
        cooperative_id=loan.cooperative_id,
        payment_id=payment_id,
        amount_paid=from_minor(amount_minor),
        amount_remaining_to_pay=from_minor(remaining_minor)
    )
    db.add(transaction)
    return transaction


def list_loans(db: Session, cooperative_id: UUID, member_id: UUID = None) -> List[Loan]:
    query = db.query(Loan).filter(Loan.cooperative_id == cooperative_id)
    if member_id is not None:
        query = query.filter(Loan.member_id == member_id)
    return query.order_by(Loan.created_at.asc(), Loan.id.asc()).all()


def get_loan_transactions(db: Session, loan_id: UUID, cooperative_id: UUID) -> List[LoanTransaction]:
    loan = db.query(Loan).filter(Loan.id == loan_id, Loan.cooperative_id == cooperative_id).first()
    if not loan:
        raise NotFoundError("Loan not found in your cooperative")
    return db.query(LoanTransaction).filter(
        LoanTransaction.loan_id == loan_id
    ).order_by(LoanTransaction.transaction_date.asc()).all()
