"""Balance aggregation over a member's fee, loan and production ledgers."""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.money import to_minor
from coopay.services.ledger import (
    get_member,
    get_open_loans,
    get_unconsumed_productions,
    get_unpaid_fees,
)
from coopay.services.season import resolve_season_scope


@dataclass(frozen=True)
class LedgerTotals:
    """Ledger totals in minor units."""
    total_production: int = 0
    total_unpaid_fees: int = 0
    total_loans: int = 0
    season_id: Optional[UUID] = None

    @property
    def total_deductions(self) -> int:
        return self.total_unpaid_fees + self.total_loans

    @property
    def current_net(self) -> int:
        # May be negative when the member owes more than they earned
        return self.total_production - self.total_deductions


def aggregate_balances(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    season_id: UUID = None
) -> LedgerTotals:
    """
    Sum a member's unconsumed production value, unpaid fees and outstanding loans.

    Raises NotFoundError when the cooperative is unknown or the member does not
    belong to it. A member without ledger rows gets zero totals.
    """
    get_member(db, member_id, cooperative_id)
    scope = resolve_season_scope(db, cooperative_id, season_id)

    total_production = sum(
        to_minor(p.total_price) for p in get_unconsumed_productions(db, member_id, cooperative_id, scope)
    )
    total_unpaid_fees = sum(
        to_minor(f.amount_owed) - to_minor(f.amount_paid) for f in get_unpaid_fees(db, member_id, cooperative_id, scope)
    )
    total_loans = sum(
        to_minor(l.amount_owed) - to_minor(l.amount_paid) for l in get_open_loans(db, member_id, cooperative_id, scope)
    )

    return LedgerTotals(
        total_production=total_production,
        total_unpaid_fees=total_unpaid_fees,
        total_loans=total_loans,
        season_id=scope
    )
