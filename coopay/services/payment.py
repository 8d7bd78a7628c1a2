"""Payment reconciliation: open-payment resolution, summary projection and settlement."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from coopay.core.config import settings
from coopay.core.exceptions import (
    ConcurrencyConflict,
    InvariantViolation,
    NotFoundError,
    ReconciliationError,
    ValidationError,
)
from coopay.core.money import Amount, from_minor, is_whole_cents, to_minor
from coopay.models.fees import Fee, FeeStatus
from coopay.models.loan import Loan, LoanStatus
from coopay.models.payment import Payment, PaymentStatus, PaymentTransaction
from coopay.models.production import ProductionPaymentStatus
from coopay.models.user import User
from coopay.services.balance import LedgerTotals, aggregate_balances
from coopay.services.cash import withdraw_for_payment
from coopay.services.ledger import (
    get_cooperative,
    get_fees_for_payment,
    get_loans_for_payment,
    get_member,
    get_open_loans,
    get_productions_for_payment,
    get_unconsumed_productions,
    get_unpaid_fees,
)
from coopay.services.loan import record_loan_reduction

logger = logging.getLogger(__name__)


@dataclass
class PaymentSummary:
    """What a member is owed right now. Amounts in minor units."""
    total_production: int
    total_unpaid_fees: int
    total_loans: int
    previous_remaining: int
    current_net: int
    amount_due: int
    existing_partial_payment: Optional[Payment] = None


@dataclass
class PaymentSummaryDetails:
    summary: PaymentSummary
    fees: List[Fee] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)


def find_open_payment(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    for_update: bool = False
) -> Optional[Payment]:
    """Return the member's open payment in the cooperative, if any."""
    query = db.query(Payment).filter(
        Payment.member_id == member_id,
        Payment.cooperative_id == cooperative_id,
        Payment.amount_remaining_to_pay > 0
    )
    if for_update:
        query = query.with_for_update()
    open_payments = query.all()
    if len(open_payments) > 1:
        logger.error(
            f"Found {len(open_payments)} open payments for member {member_id} "
            f"in cooperative {cooperative_id}: {[str(p.id) for p in open_payments]}"
        )
        raise InvariantViolation("Multiple open payments found for this member")
    return open_payments[0] if open_payments else None


def project_summary(totals: LedgerTotals, open_payment: Optional[Payment]) -> PaymentSummary:
    """An open payment's remaining balance is the amount due; otherwise the net, floored at zero."""
    if open_payment is not None:
        remaining = to_minor(open_payment.amount_remaining_to_pay)
        amount_due = remaining
        previous_remaining = remaining
    else:
        amount_due = max(totals.current_net, 0)
        previous_remaining = 0

    return PaymentSummary(
        total_production=totals.total_production,
        total_unpaid_fees=totals.total_unpaid_fees,
        total_loans=totals.total_loans,
        previous_remaining=previous_remaining,
        current_net=totals.current_net,
        amount_due=amount_due,
        existing_partial_payment=open_payment
    )


def compute_summary(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    season_id: UUID = None,
    for_update: bool = False
) -> Tuple[PaymentSummary, LedgerTotals, Optional[Payment]]:
    """Resolve the open payment and the ledger totals in the caller's transaction.

    Returns ``(summary, totals, open_payment)``.
    """
    totals = aggregate_balances(db, member_id, cooperative_id, season_id)
    open_payment = find_open_payment(db, member_id, cooperative_id, for_update=for_update)
    return project_summary(totals, open_payment), totals, open_payment


def get_payment_summary(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    season_id: UUID = None
) -> PaymentSummaryDetails:
    """Summary plus the unpaid fees, open loans and payments behind it, read in one transaction."""
    summary, totals, _ = compute_summary(db, member_id, cooperative_id, season_id)
    return PaymentSummaryDetails(
        summary=summary,
        fees=get_unpaid_fees(db, member_id, cooperative_id, totals.season_id),
        loans=get_open_loans(db, member_id, cooperative_id, totals.season_id),
        payments=list_member_payments(db, member_id, cooperative_id)
    )


def _check_row(row, kind: str) -> None:
    if to_minor(row.amount_paid) > to_minor(row.amount_owed) or to_minor(row.amount_paid) < 0:
        logger.error(f"{kind} {row.id} has amount_paid={row.amount_paid} outside 0..{row.amount_owed}")
        raise InvariantViolation(f"{kind} {row.id} is overpaid")


def _apply_to_fee(fee: Fee, amount_minor: int) -> None:
    _check_row(fee, "Fee")
    new_paid = to_minor(fee.amount_paid) + amount_minor
    if new_paid > to_minor(fee.amount_owed):
        logger.error(f"Settlement would overpay fee {fee.id}")
        raise InvariantViolation(f"Fee {fee.id} would be overpaid")
    fee.amount_paid = from_minor(new_paid)
    fee.refresh_status()


def _apply_to_loan(db: Session, loan: Loan, amount_minor: int, payment_id: UUID) -> None:
    _check_row(loan, "Loan")
    new_paid = to_minor(loan.amount_paid) + amount_minor
    if new_paid > to_minor(loan.amount_owed):
        logger.error(f"Settlement would overpay loan {loan.id}")
        raise InvariantViolation(f"Loan {loan.id} would be overpaid")
    loan.amount_paid = from_minor(new_paid)
    if new_paid == to_minor(loan.amount_owed):
        loan.status = LoanStatus.REPAID
        loan.repaid_at = datetime.utcnow()
    record_loan_reduction(db, loan, amount_minor, payment_id=payment_id)


def _allocate_partial(db: Session, payment: Payment, amount_minor: int) -> None:
    """Spread a partial settlement over linked fees then loans, oldest first."""
    budget = amount_minor
    for fee in get_fees_for_payment(db, payment.id, for_update=True):
        if budget <= 0:
            return
        if fee.status == FeeStatus.PAID:
            _check_row(fee, "Fee")
            continue
        take = min(to_minor(fee.amount_owed) - to_minor(fee.amount_paid), budget)
        if take > 0:
            _apply_to_fee(fee, take)
            budget -= take

    for loan in get_loans_for_payment(db, payment.id, for_update=True):
        if budget <= 0:
            return
        if loan.status == LoanStatus.REPAID:
            _check_row(loan, "Loan")
            continue
        take = min(to_minor(loan.amount_owed) - to_minor(loan.amount_paid), budget)
        if take > 0:
            _apply_to_loan(db, loan, take, payment.id)
            budget -= take


def _settle_in_full(db: Session, payment: Payment) -> None:
    """Close every ledger row linked to a fully paid payment."""
    for fee in get_fees_for_payment(db, payment.id, for_update=True):
        _apply_to_fee(fee, to_minor(fee.amount_owed) - to_minor(fee.amount_paid))

    for loan in get_loans_for_payment(db, payment.id, for_update=True):
        outstanding = to_minor(loan.amount_owed) - to_minor(loan.amount_paid)
        if outstanding > 0:
            _apply_to_loan(db, loan, outstanding, payment.id)
        else:
            _check_row(loan, "Loan")
            loan.status = LoanStatus.REPAID
            loan.repaid_at = loan.repaid_at or datetime.utcnow()

    for production in get_productions_for_payment(db, payment.id, for_update=True):
        production.payment_status = ProductionPaymentStatus.PAID


def _open_payment(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    totals: LedgerTotals,
    amount_due: int,
    processed_by: Optional[User]
) -> Payment:
    """Create a payment and link the ledger rows that produced its amount due."""
    payment = Payment(
        member_id=member_id,
        cooperative_id=cooperative_id,
        season_id=totals.season_id,
        gross_amount=from_minor(totals.total_production),
        total_deductions=from_minor(totals.total_deductions),
        amount_due=from_minor(amount_due),
        amount_paid=from_minor(0),
        amount_remaining_to_pay=from_minor(amount_due),
        status=PaymentStatus.PENDING,
        processed_by=processed_by.id if processed_by else None
    )
    db.add(payment)
    db.flush()

    scope = totals.season_id
    for fee in get_unpaid_fees(db, member_id, cooperative_id, scope, for_update=True):
        fee.payment_id = payment.id
    for loan in get_open_loans(db, member_id, cooperative_id, scope, for_update=True):
        loan.payment_id = payment.id
    for production in get_unconsumed_productions(db, member_id, cooperative_id, scope, for_update=True):
        production.payment_id = payment.id
    db.flush()
    return payment


def settle(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    amount_paid: Amount,
    season_id: UUID = None,
    processed_by: Optional[User] = None
) -> Payment:
    """
    Pay a member part or all of what they are owed.

    The amount due is always recomputed here, under a lock on the member's
    row, never taken from the caller. Either everything commits (payment,
    ledger rows, transactions, cash) or nothing does.

    Raises:
        ValidationError: amount not positive, finer than one cent, above the
            amount due, or not covered by the cooperative's cash.
        NotFoundError: unknown cooperative or member.
        InvariantViolation: corrupt ledger state.
        ConcurrencyConflict: a concurrent settlement won the slot; retry.
    """
    try:
        amount_minor = to_minor(amount_paid)
    except ValueError:
        raise ValidationError("Amount must be a number")
    if not is_whole_cents(amount_paid):
        raise ValidationError("Amount must be a valid currency amount")

    try:
        if amount_minor <= 0:
            raise ValidationError("Amount must be positive")

        # Serialize settlements for this member
        get_member(db, member_id, cooperative_id, for_update=True)
        summary, totals, open_payment = compute_summary(
            db, member_id, cooperative_id, season_id, for_update=True
        )
        amount_due = summary.amount_due

        if amount_minor > amount_due:
            raise ValidationError("Amount exceeds amount due")

        if settings.ENFORCE_COOPERATIVE_CASH:
            withdraw_for_payment(db, cooperative_id, from_minor(amount_minor))

        remaining_after = amount_due - amount_minor

        if open_payment is not None:
            payment = open_payment
            if to_minor(payment.amount_due) - to_minor(payment.amount_paid) != amount_due:
                logger.error(f"Payment {payment.id} remaining balance does not match amount due minus amount paid")
                raise InvariantViolation("Open payment balance is inconsistent")
        else:
            payment = _open_payment(db, member_id, cooperative_id, totals, amount_due, processed_by)

        payment.amount_paid = from_minor(to_minor(payment.amount_paid) + amount_minor)
        payment.amount_remaining_to_pay = from_minor(remaining_after)
        payment.status = PaymentStatus.PAID if remaining_after == 0 else PaymentStatus.PARTIAL
        if processed_by is not None:
            payment.processed_by = processed_by.id

        if remaining_after == 0:
            _settle_in_full(db, payment)
        else:
            _allocate_partial(db, payment, amount_minor)

        db.add(PaymentTransaction(
            payment_id=payment.id,
            member_id=member_id,
            cooperative_id=cooperative_id,
            amount_paid=from_minor(amount_minor),
            amount_remaining_to_pay=from_minor(remaining_after),
            processed_by=processed_by.id if processed_by else None
        ))
        db.commit()
    except ValidationError as e:
        db.rollback()
        logger.warning(f"Settlement rejected for member {member_id} in cooperative {cooperative_id}: {e.message}")
        raise
    except ReconciliationError:
        db.rollback()
        raise
    except (IntegrityError, StaleDataError, OperationalError) as e:
        db.rollback()
        logger.warning(f"Concurrent settlement for member {member_id} in cooperative {cooperative_id}: {e}")
        raise ConcurrencyConflict("Another payment for this member is being processed; please retry")

    db.refresh(payment)
    logger.info(
        f"Settled {from_minor(amount_minor)} {settings.CURRENCY} for member {member_id}: "
        f"payment={payment.id} status={payment.status.value} remaining={payment.amount_remaining_to_pay}"
    )
    return payment


def list_cooperative_payments(db: Session, cooperative_id: UUID) -> List[Payment]:
    get_cooperative(db, cooperative_id)
    return db.query(Payment).filter(
        Payment.cooperative_id == cooperative_id
    ).order_by(Payment.created_at.desc()).all()


def list_member_payments(db: Session, member_id: UUID, cooperative_id: UUID) -> List[Payment]:
    return db.query(Payment).filter(
        Payment.member_id == member_id,
        Payment.cooperative_id == cooperative_id
    ).order_by(Payment.created_at.desc()).all()


def get_payment(db: Session, payment_id: UUID, cooperative_id: UUID) -> Payment:
    payment = db.query(Payment).filter(
        Payment.id == payment_id,
        Payment.cooperative_id == cooperative_id
    ).first()
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def list_payment_transactions(db: Session, cooperative_id: UUID, member_id: UUID = None) -> List[PaymentTransaction]:
    query = db.query(PaymentTransaction).filter(PaymentTransaction.cooperative_id == cooperative_id)
    if member_id is not None:
        query = query.filter(PaymentTransaction.member_id == member_id)
    return query.order_by(PaymentTransaction.transaction_date.desc()).all()
