import uuid

import pytest

from coopay.core.exceptions import NotFoundError
from coopay.core.money import to_minor
from coopay.models import Season, SeasonName, SeasonStatus
from coopay.services.balance import aggregate_balances


def test_net_is_production_minus_fees_and_loans(db, scenario):
    totals = aggregate_balances(db, scenario["member"].id, scenario["coop"].id)

    assert totals.total_production == to_minor(50000)
    assert totals.total_unpaid_fees == to_minor(10000)
    assert totals.total_loans == to_minor(5000)
    assert totals.current_net == to_minor(35000)


def test_cent_amounts_sum_exactly(db, factory, coop, member):
    for _ in range(10):
        factory.production(member, "0.10")
    factory.fee(member, "0.30")
    factory.loan(member, "0.20")

    totals = aggregate_balances(db, member.id, coop.id)

    assert totals.total_production == 100
    assert totals.current_net == 50


def test_partially_paid_rows_count_only_the_outstanding_part(db, factory, coop, member):
    factory.fee(member, "1000", amount_paid="400")
    factory.loan(member, "3000", amount_paid="1000")

    totals = aggregate_balances(db, member.id, coop.id)

    assert totals.total_unpaid_fees == to_minor(600)
    assert totals.total_loans == to_minor(2000)


def test_negative_net_is_valid(db, factory, coop, member):
    factory.production(member, "1000")
    factory.fee(member, "5000")

    totals = aggregate_balances(db, member.id, coop.id)

    assert totals.current_net == to_minor(-4000)


def test_member_without_rows_gets_zero_totals(db, coop, member):
    totals = aggregate_balances(db, member.id, coop.id)

    assert (totals.total_production, totals.total_unpaid_fees, totals.total_loans) == (0, 0, 0)
    assert totals.current_net == 0


def test_unknown_cooperative_raises(db, member):
    with pytest.raises(NotFoundError, match="Cooperative not found"):
        aggregate_balances(db, member.id, uuid.uuid4())


def test_member_of_another_cooperative_raises(db, factory, coop):
    other = factory.cooperative(name="Other Cooperative")
    outsider = factory.member(other)

    with pytest.raises(NotFoundError, match="Member not found"):
        aggregate_balances(db, outsider.id, coop.id)


def test_staff_user_is_not_a_member(db, coop, manager):
    with pytest.raises(NotFoundError):
        aggregate_balances(db, manager.id, coop.id)


def test_season_scope_filters_productions_but_keeps_unseasoned_obligations(db, factory, coop, member):
    active = factory.season(coop)
    previous = Season(cooperative_id=coop.id, name=SeasonName.SEASON_B, year=2025, status=SeasonStatus.INACTIVE)
    db.add(previous)
    db.commit()

    factory.production(member, "7000", season=active)
    factory.production(member, "3000", season=previous)
    factory.fee(member, "500")
    factory.fee(member, "200", season=previous)

    current = aggregate_balances(db, member.id, coop.id)
    assert current.season_id == active.id
    assert current.total_production == to_minor(7000)
    assert current.total_unpaid_fees == to_minor(500)

    past = aggregate_balances(db, member.id, coop.id, season_id=previous.id)
    assert past.total_production == to_minor(3000)
    assert past.total_unpaid_fees == to_minor(700)


def test_season_of_another_cooperative_is_rejected(db, factory, coop, member):
    other = factory.cooperative(name="Other Cooperative")

    with pytest.raises(NotFoundError, match="Season not found"):
        aggregate_balances(db, member.id, coop.id, season_id=factory.season(other).id)
