"""Read-only accessors over the fee, loan and production ledgers.

Every reader is scoped to one member in one cooperative and returns rows
oldest first (``created_at``, then ``id``) so settlement allocation is
deterministic.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from coopay.core.exceptions import NotFoundError
from coopay.models.cooperative import Cooperative
from coopay.models.fees import Fee, FeeStatus
from coopay.models.loan import Loan, LoanStatus
from coopay.models.production import Production, ProductionPaymentStatus
from coopay.models.user import User, UserRoleEnum


def get_cooperative(db: Session, cooperative_id: UUID) -> Cooperative:
    cooperative = db.query(Cooperative).filter(Cooperative.id == cooperative_id).first()
    if not cooperative:
        raise NotFoundError("Cooperative not found")
    return cooperative


def get_member(db: Session, member_id: UUID, cooperative_id: UUID, for_update: bool = False) -> User:
    """Resolve a member of a cooperative.

    With ``for_update`` the member row is locked; settlement uses this lock
    as the member's payment slot.
    """
    get_cooperative(db, cooperative_id)
    query = db.query(User).filter(
        User.id == member_id,
        User.cooperative_id == cooperative_id,
        User.role == UserRoleEnum.MEMBER
    )
    if for_update:
        query = query.with_for_update()
    member = query.first()
    if not member:
        raise NotFoundError("Member not found in this cooperative")
    return member


def _lock(query: Query, for_update: bool) -> Query:
    return query.with_for_update() if for_update else query


def get_unpaid_fees(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    season_id: Optional[UUID] = None,
    for_update: bool = False
) -> List[Fee]:
    """Fees not yet fully paid. Non-seasonal fees are always in scope."""
    query = db.query(Fee).filter(
        Fee.member_id == member_id,
        Fee.cooperative_id == cooperative_id,
        Fee.status != FeeStatus.PAID
    )
    if season_id is not None:
        query = query.filter(or_(Fee.season_id == season_id, Fee.season_id.is_(None)))
    return _lock(query.order_by(Fee.created_at.asc(), Fee.id.asc()), for_update).all()


def get_open_loans(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    season_id: Optional[UUID] = None,
    for_update: bool = False
) -> List[Loan]:
    """Loans still pending repayment. Loans without a season are always in scope."""
    query = db.query(Loan).filter(
        Loan.member_id == member_id,
        Loan.cooperative_id == cooperative_id,
        Loan.status == LoanStatus.PENDING
    )
    if season_id is not None:
        query = query.filter(or_(Loan.season_id == season_id, Loan.season_id.is_(None)))
    return _lock(query.order_by(Loan.created_at.asc(), Loan.id.asc()), for_update).all()


def get_unconsumed_productions(
    db: Session,
    member_id: UUID,
    cooperative_id: UUID,
    season_id: Optional[UUID] = None,
    for_update: bool = False
) -> List[Production]:
    """Productions not yet consumed by a settled payment."""
    query = db.query(Production).filter(
        Production.member_id == member_id,
        Production.cooperative_id == cooperative_id,
        Production.payment_status == ProductionPaymentStatus.PENDING
    )
    if season_id is not None:
        query = query.filter(Production.season_id == season_id)
    return _lock(query.order_by(Production.created_at.asc(), Production.id.asc()), for_update).all()


def get_fees_for_payment(db: Session, payment_id: UUID, for_update: bool = False) -> List[Fee]:
    query = db.query(Fee).filter(Fee.payment_id == payment_id).order_by(Fee.created_at.asc(), Fee.id.asc())
    return _lock(query, for_update).all()


def get_loans_for_payment(db: Session, payment_id: UUID, for_update: bool = False) -> List[Loan]:
    query = db.query(Loan).filter(Loan.payment_id == payment_id).order_by(Loan.created_at.asc(), Loan.id.asc())
    return _lock(query, for_update).all()


def get_productions_for_payment(db: Session, payment_id: UUID, for_update: bool = False) -> List[Production]:
    query = db.query(Production).filter(Production.payment_id == payment_id).order_by(
        Production.created_at.asc(), Production.id.asc()
    )
    return _lock(query, for_update).all()
