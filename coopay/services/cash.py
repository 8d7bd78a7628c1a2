from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.exceptions import NotFoundError, ValidationError
from coopay.core.money import is_whole_cents, quantize
from coopay.models.cooperative import CooperativeCash
from coopay.services.ledger import get_cooperative


def get_cash(db: Session, cooperative_id: UUID) -> CooperativeCash:
    cash = db.query(CooperativeCash).filter(CooperativeCash.cooperative_id == cooperative_id).first()
    if not cash:
        raise NotFoundError("Cash record not found")
    return cash


def deposit_cash(db: Session, cooperative_id: UUID, amount: Decimal) -> CooperativeCash:
    """Add money to a cooperative's cash (creates the record on first deposit)."""
    if not is_whole_cents(amount):
        raise ValidationError("Amount must be a valid currency amount")
    amount = quantize(amount)
    if amount <= 0:
        raise ValidationError("Amount must be positive")
    get_cooperative(db, cooperative_id)

    cash = db.query(CooperativeCash).filter(
        CooperativeCash.cooperative_id == cooperative_id
    ).with_for_update().first()
    if not cash:
        cash = CooperativeCash(cooperative_id=cooperative_id, balance=amount)
        db.add(cash)
    else:
        cash.balance = quantize(cash.balance) + amount
    db.commit()
    db.refresh(cash)
    return cash


def withdraw_for_payment(db: Session, cooperative_id: UUID, amount: Decimal) -> None:
    """Take ``amount`` out of the cooperative's cash inside the caller's transaction.

    A single conditional UPDATE so concurrent payments cannot overdraw.
    """
    amount = quantize(amount)
    updated = db.query(CooperativeCash).filter(
        CooperativeCash.cooperative_id == cooperative_id,
        CooperativeCash.balance >= amount
    ).update(
        {CooperativeCash.balance: CooperativeCash.balance - amount},
        synchronize_session="fetch"
    )
    if updated != 1:
        raise ValidationError("Insufficient cooperative funds")
