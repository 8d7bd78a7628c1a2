from decimal import Decimal

import pytest
from sqlalchemy import text

from coopay.core.config import settings
from coopay.core.exceptions import InvariantViolation, NotFoundError, ValidationError
from coopay.core.money import to_minor
from coopay.models import (
    CooperativeCash,
    Fee,
    FeeStatus,
    Loan,
    LoanStatus,
    LoanTransaction,
    Payment,
    PaymentStatus,
    PaymentTransaction,
    Production,
    ProductionPaymentStatus,
)
from coopay.services.payment import (
    _apply_to_fee,
    find_open_payment,
    get_payment_summary,
    project_summary,
    settle,
)
from coopay.services.balance import LedgerTotals
from coopay.services.cash import deposit_cash
from coopay.services.loan import create_loan


def _cash(db, coop):
    return db.query(CooperativeCash).filter(CooperativeCash.cooperative_id == coop.id).one().balance


# Scenario A
def test_summary_without_open_payment(db, scenario):
    details = get_payment_summary(db, scenario["member"].id, scenario["coop"].id)
    summary = details.summary

    assert summary.total_production == to_minor(50000)
    assert summary.total_unpaid_fees == to_minor(10000)
    assert summary.total_loans == to_minor(5000)
    assert summary.current_net == to_minor(35000)
    assert summary.amount_due == to_minor(35000)
    assert summary.previous_remaining == 0
    assert summary.existing_partial_payment is None
    assert [f.id for f in details.fees] == [scenario["fee"].id]
    assert [l.id for l in details.loans] == [scenario["loan"].id]
    assert details.payments == []


def test_summary_is_idempotent(db, scenario):
    first = get_payment_summary(db, scenario["member"].id, scenario["coop"].id).summary
    second = get_payment_summary(db, scenario["member"].id, scenario["coop"].id).summary

    assert first == second


# Scenario B
def test_partial_settlement_opens_payment(db, scenario):
    payment = settle(db, scenario["member"].id, scenario["coop"].id, Decimal("20000"))

    assert payment.amount_due == Decimal("35000.00")
    assert payment.amount_paid == Decimal("20000.00")
    assert payment.amount_remaining_to_pay == Decimal("15000.00")
    assert payment.status == PaymentStatus.PARTIAL
    assert payment.gross_amount == Decimal("50000.00")
    assert payment.total_deductions == Decimal("15000.00")

    transactions = db.query(PaymentTransaction).filter(PaymentTransaction.payment_id == payment.id).all()
    assert len(transactions) == 1
    assert transactions[0].amount_remaining_to_pay == Decimal("15000.00")


# Scenario C
def test_open_payment_remaining_is_the_amount_due(db, scenario):
    settle(db, scenario["member"].id, scenario["coop"].id, Decimal("20000"))

    summary = get_payment_summary(db, scenario["member"].id, scenario["coop"].id).summary

    assert summary.existing_partial_payment is not None
    assert summary.existing_partial_payment.amount_remaining_to_pay == Decimal("15000.00")
    assert summary.amount_due == to_minor(15000)
    assert summary.previous_remaining == to_minor(15000)


# Scenario D
def test_full_settlement_closes_payment_and_ledger(db, scenario):
    member, coop = scenario["member"], scenario["coop"]
    first = settle(db, member.id, coop.id, Decimal("20000"))
    payment = settle(db, member.id, coop.id, Decimal("15000"))

    assert payment.id == first.id
    assert payment.amount_paid == Decimal("35000.00")
    assert payment.amount_remaining_to_pay == Decimal("0.00")
    assert payment.status == PaymentStatus.PAID

    fees = db.query(Fee).filter(Fee.member_id == member.id).all()
    assert all(f.status == FeeStatus.PAID and f.amount_paid == f.amount_owed for f in fees)
    loans = db.query(Loan).filter(Loan.member_id == member.id).all()
    assert all(l.status == LoanStatus.REPAID for l in loans)
    productions = db.query(Production).filter(Production.member_id == member.id).all()
    assert all(p.payment_status == ProductionPaymentStatus.PAID for p in productions)

    assert find_open_payment(db, member.id, coop.id) is None
    summary = get_payment_summary(db, member.id, coop.id).summary
    assert summary.amount_due == 0
    assert summary.current_net == 0


# Scenario E
def test_amount_above_due_is_rejected_without_changes(db, scenario):
    member, coop = scenario["member"], scenario["coop"]
    cash_before = _cash(db, coop)

    with pytest.raises(ValidationError, match="Amount exceeds amount due"):
        settle(db, member.id, coop.id, Decimal("999999"))

    assert db.query(Payment).count() == 0
    assert db.query(PaymentTransaction).count() == 0
    fee = db.get(Fee, scenario["fee"].id)
    assert fee.amount_paid == Decimal("0.00")
    assert fee.payment_id is None
    assert _cash(db, coop) == cash_before


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), None])
def test_non_positive_amount_is_rejected(db, scenario, amount):
    with pytest.raises(ValidationError, match="Amount must be positive"):
        settle(db, scenario["member"].id, scenario["coop"].id, amount)


@pytest.mark.parametrize("amount", [Decimal("100.005"), Decimal("0.001"), "20000.999"])
def test_sub_cent_amount_is_rejected(db, scenario, amount):
    coop = scenario["coop"]
    cash_before = _cash(db, coop)

    with pytest.raises(ValidationError, match="Amount must be a valid currency amount"):
        settle(db, scenario["member"].id, coop.id, amount)

    assert db.query(Payment).count() == 0
    assert _cash(db, coop) == cash_before


def test_sub_cent_deposit_and_loan_are_rejected(db, scenario):
    coop, member = scenario["coop"], scenario["member"]

    with pytest.raises(ValidationError, match="Amount must be a valid currency amount"):
        deposit_cash(db, coop.id, Decimal("10.001"))
    with pytest.raises(ValidationError, match="Amount must be a valid currency amount"):
        create_loan(db, member.id, coop.id, Decimal("500.125"))

    assert db.query(Loan).count() == 1


def test_nothing_due_when_net_is_negative(db, factory, coop, member):
    factory.production(member, "1000")
    factory.fee(member, "5000")

    summary = get_payment_summary(db, member.id, coop.id).summary
    assert summary.current_net == to_minor(-4000)
    assert summary.amount_due == 0

    with pytest.raises(ValidationError, match="Amount exceeds amount due"):
        settle(db, member.id, coop.id, Decimal("1"))


def test_unknown_member_raises_not_found(db, coop, manager):
    with pytest.raises(NotFoundError):
        settle(db, manager.id, coop.id, Decimal("100"))


def test_partial_allocation_is_fees_then_loans_oldest_first(db, factory, coop, member):
    factory.production(member, "50000")
    older_fee = factory.fee(member, "3000")
    newer_fee = factory.fee(member, "4000")
    loan = factory.loan(member, "5000")

    payment = settle(db, member.id, coop.id, Decimal("5000"))
    assert payment.amount_due == Decimal("38000.00")

    db.refresh(older_fee)
    db.refresh(newer_fee)
    db.refresh(loan)
    assert older_fee.status == FeeStatus.PAID
    assert older_fee.paid_at is not None
    assert newer_fee.amount_paid == Decimal("2000.00")
    assert newer_fee.status == FeeStatus.PARTIAL
    assert loan.amount_paid == Decimal("0.00")
    assert db.query(LoanTransaction).count() == 0

    settle(db, member.id, coop.id, Decimal("4000"))

    db.refresh(newer_fee)
    db.refresh(loan)
    assert newer_fee.status == FeeStatus.PAID
    assert loan.amount_paid == Decimal("2000.00")
    assert loan.status == LoanStatus.PENDING
    transactions = db.query(LoanTransaction).filter(LoanTransaction.loan_id == loan.id).all()
    assert len(transactions) == 1
    assert transactions[0].amount_paid == Decimal("2000.00")
    assert transactions[0].amount_remaining_to_pay == Decimal("3000.00")
    assert transactions[0].payment_id == payment.id


def test_settlement_is_monotonic(db, factory, coop, member):
    factory.production(member, "30000")
    fees = [factory.fee(member, "2500"), factory.fee(member, "1500")]
    loans = [factory.loan(member, "4000")]

    due = get_payment_summary(db, member.id, coop.id).summary.amount_due
    paid_before = {row.id: row.amount_paid for row in fees + loans}

    for amount in ["1000", "3000", "500", "7000"]:
        payment = settle(db, member.id, coop.id, Decimal(amount))
        assert to_minor(payment.amount_remaining_to_pay) == due - to_minor(amount)
        due = to_minor(payment.amount_remaining_to_pay)

        for row in fees + loans:
            db.refresh(row)
            assert row.amount_paid >= paid_before[row.id]
            assert row.amount_paid <= row.amount_owed
            paid_before[row.id] = row.amount_paid

    assert payment.status == PaymentStatus.PARTIAL
    assert db.query(Payment).count() == 1


def test_rows_created_after_opening_wait_for_next_payment(db, factory, coop, member):
    factory.production(member, "10000")
    settle(db, member.id, coop.id, Decimal("4000"))

    late_fee = factory.fee(member, "1000")
    payment = settle(db, member.id, coop.id, Decimal("6000"))

    assert payment.status == PaymentStatus.PAID
    db.refresh(late_fee)
    assert late_fee.status == FeeStatus.UNPAID
    assert late_fee.payment_id is None


def test_cash_is_withdrawn(db, scenario):
    coop = scenario["coop"]
    before = _cash(db, coop)

    settle(db, scenario["member"].id, coop.id, Decimal("20000"))

    db.expire_all()
    assert _cash(db, coop) == before - Decimal("20000")


def test_insufficient_cash_is_rejected(db, factory):
    poor = factory.cooperative(name="Poor Cooperative", cash="100")
    poor_member = factory.member(poor)
    factory.production(poor_member, "5000")

    with pytest.raises(ValidationError, match="Insufficient cooperative funds"):
        settle(db, poor_member.id, poor.id, Decimal("500"))

    assert db.query(Payment).count() == 0


def test_cash_check_can_be_disabled(db, factory, monkeypatch):
    monkeypatch.setattr(settings, "ENFORCE_COOPERATIVE_CASH", False)
    poor = factory.cooperative(name="Poor Cooperative", cash="0")
    poor_member = factory.member(poor)
    factory.production(poor_member, "5000")

    payment = settle(db, poor_member.id, poor.id, Decimal("500"))

    assert payment.amount_paid == Decimal("500.00")


def test_multiple_open_payments_is_an_invariant_violation(db, scenario):
    member, coop = scenario["member"], scenario["coop"]
    db.execute(text("DROP INDEX uq_payment_open_slot"))
    for _ in range(2):
        db.add(Payment(
            member_id=member.id,
            cooperative_id=coop.id,
            amount_due=Decimal("100"),
            amount_paid=Decimal("0"),
            amount_remaining_to_pay=Decimal("100"),
            status=PaymentStatus.PENDING,
        ))
    db.commit()

    with pytest.raises(InvariantViolation):
        find_open_payment(db, member.id, coop.id)
    with pytest.raises(InvariantViolation):
        settle(db, member.id, coop.id, Decimal("50"))


def test_failed_settlement_after_cash_withdrawal_changes_nothing(db, scenario):
    member, coop = scenario["member"], scenario["coop"]
    payment = settle(db, member.id, coop.id, Decimal("20000"))

    # Remaining no longer equals amount due minus amount paid
    payment.amount_paid = Decimal("1000.00")
    db.commit()

    db.expire_all()
    cash_before = _cash(db, coop)
    loan_transactions_before = db.query(LoanTransaction).count()
    fee_before = db.get(Fee, scenario["fee"].id)
    fee_state = (fee_before.amount_paid, fee_before.status, fee_before.payment_id)
    loan_before = db.get(Loan, scenario["loan"].id)
    loan_state = (loan_before.amount_paid, loan_before.status, loan_before.payment_id)

    with pytest.raises(InvariantViolation):
        settle(db, member.id, coop.id, Decimal("5000"))

    db.expire_all()
    assert _cash(db, coop) == cash_before
    assert db.query(PaymentTransaction).count() == 1
    assert db.query(LoanTransaction).count() == loan_transactions_before
    fee = db.get(Fee, scenario["fee"].id)
    assert (fee.amount_paid, fee.status, fee.payment_id) == fee_state
    loan = db.get(Loan, scenario["loan"].id)
    assert (loan.amount_paid, loan.status, loan.payment_id) == loan_state
    stored = db.get(Payment, payment.id)
    assert stored.amount_paid == Decimal("1000.00")
    assert stored.amount_remaining_to_pay == Decimal("15000.00")
    productions = db.query(Production).filter(Production.member_id == member.id).all()
    assert all(p.payment_status == ProductionPaymentStatus.PENDING for p in productions)


def test_overpaying_a_fee_is_an_invariant_violation():
    fee = Fee(amount_owed=Decimal("100.00"), amount_paid=Decimal("0.00"))

    with pytest.raises(InvariantViolation):
        _apply_to_fee(fee, to_minor(200))


def test_projector_prefers_open_payment():
    totals = LedgerTotals(total_production=900, total_unpaid_fees=100, total_loans=0)
    open_payment = Payment(amount_remaining_to_pay=Decimal("2.50"))

    summary = project_summary(totals, open_payment)

    assert summary.amount_due == 250
    assert summary.previous_remaining == 250
    assert summary.current_net == 800
    assert project_summary(totals, None).amount_due == 800
