from decimal import Decimal

import pytest

from coopay.core.exceptions import NotFoundError, ValidationError
from coopay.models import Fee, FeeStatus, LoanStatus, ProductionPaymentStatus, UserRoleEnum
from coopay.services.auth import create_user
from coopay.services.fees import assign_fee_to_member, assign_fee_to_members, create_fee_type
from coopay.services.loan import compute_amount_owed, create_loan
from coopay.services.production import create_product, record_production


def test_non_seasonal_fee_type_is_applied_to_every_member(db, factory, coop):
    members = [factory.member(coop), factory.member(coop)]
    factory.user(coop, UserRoleEnum.ACCOUNTANT)

    fee_type = create_fee_type(db, coop.id, "Membership", Decimal("5000"), is_per_season=False)

    fees = db.query(Fee).filter(Fee.fee_type_id == fee_type.id).all()
    assert sorted(f.member_id for f in fees) == sorted(m.id for m in members)
    assert all(f.season_id is None and f.status == FeeStatus.UNPAID for f in fees)
    assert all(f.amount_owed == Decimal("5000.00") for f in fees)


def test_seasonal_fee_type_is_applied_to_active_season(db, factory, coop, member):
    fee_type = create_fee_type(db, coop.id, "Season contribution", Decimal("2000"))

    fee = db.query(Fee).filter(Fee.fee_type_id == fee_type.id).one()
    assert fee.season_id == factory.season(coop).id


def test_duplicate_fee_type_is_rejected(db, coop):
    create_fee_type(db, coop.id, "Membership", Decimal("5000"))

    with pytest.raises(ValidationError, match="Fee type already exists"):
        create_fee_type(db, coop.id, "Membership", Decimal("1000"))


def test_assign_to_members_skips_existing(db, factory, coop, member):
    fee_type = create_fee_type(db, coop.id, "Levy", Decimal("700"), is_per_season=False, auto_apply_on_create=False)
    assert assign_fee_to_members(db, fee_type.id) == 1

    factory.member(coop)
    assert assign_fee_to_members(db, fee_type.id) == 1
    assert assign_fee_to_members(db, fee_type.id) == 0


def test_per_season_fee_type_needs_a_season(db, coop, member):
    fee_type = create_fee_type(db, coop.id, "Levy", Decimal("700"), auto_apply_on_create=False)

    with pytest.raises(ValidationError, match="Season ID must be provided"):
        assign_fee_to_members(db, fee_type.id)


def test_assign_single_fee_twice_is_rejected(db, coop, member):
    fee_type = create_fee_type(db, coop.id, "Levy", Decimal("700"), auto_apply_on_create=False)
    fee = assign_fee_to_member(db, member.id, coop.id, fee_type.id)
    assert fee.amount_owed == Decimal("700.00")

    with pytest.raises(ValidationError, match="already assigned"):
        assign_fee_to_member(db, member.id, coop.id, fee_type.id)


def test_new_member_receives_auto_fees(db, coop):
    create_fee_type(db, coop.id, "Membership", Decimal("5000"), is_per_season=False)
    create_fee_type(db, coop.id, "Season contribution", Decimal("2000"))

    member = create_user(db, "New Member", "0789999999", "secret123", cooperative_id=coop.id)

    fees = db.query(Fee).filter(Fee.member_id == member.id).all()
    assert sorted(f.amount_owed for f in fees) == [Decimal("2000.00"), Decimal("5000.00")]


@pytest.mark.parametrize("principal, rate, expected", [
    ("10000", "5", "10500.00"),
    ("333.33", "10", "366.66"),
    ("0.05", "50", "0.08"),
    ("2500", "0", "2500.00"),
])
def test_loan_interest_rounds_half_up(principal, rate, expected):
    assert compute_amount_owed(Decimal(principal), Decimal(rate)) == Decimal(expected)


def test_create_loan(db, coop, member, manager):
    loan = create_loan(db, member.id, coop.id, Decimal("20000"), Decimal("5"), created_by=manager.id)

    assert loan.amount_owed == Decimal("21000.00")
    assert loan.amount_paid == Decimal("0.00")
    assert loan.status == LoanStatus.PENDING


def test_loan_requires_membership_and_positive_amount(db, factory, coop, member):
    outsider = factory.member(factory.cooperative(name="Other Cooperative"))

    with pytest.raises(NotFoundError):
        create_loan(db, outsider.id, coop.id, Decimal("1000"))
    with pytest.raises(ValidationError):
        create_loan(db, member.id, coop.id, Decimal("0"))
    with pytest.raises(ValidationError):
        create_loan(db, member.id, coop.id, Decimal("100"), Decimal("-1"))


def test_production_total_is_quantity_times_price(db, factory, coop, member):
    product = create_product(db, coop.id, "Maize", Decimal("350"))

    production = record_production(db, member.id, coop.id, product.id, quantity=12)

    assert production.total_price == Decimal("4200.00")
    assert production.season_id == factory.season(coop).id
    assert production.payment_status == ProductionPaymentStatus.PENDING


@pytest.mark.parametrize("quantity", [0, -3, 1.5])
def test_production_quantity_must_be_a_positive_integer(db, coop, member, quantity):
    product = create_product(db, coop.id, "Maize", Decimal("350"))

    with pytest.raises(ValidationError):
        record_production(db, member.id, coop.id, product.id, quantity=quantity)
