import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.exceptions import NotFoundError
from coopay.models.cooperative import Cooperative, Season, SeasonName, SeasonStatus

logger = logging.getLogger(__name__)


def current_season_info(today: date = None) -> Tuple[SeasonName, int]:
    """Season for a calendar date.

    Season-A runs September to January and is labelled with the year it ends
    in, so September-December belong to next year's Season-A. Season-B runs
    February to August.
    """
    today = today or date.today()
    if today.month >= 9:
        return SeasonName.SEASON_A, today.year + 1
    if today.month == 1:
        return SeasonName.SEASON_A, today.year
    return SeasonName.SEASON_B, today.year


def next_season_info(today: date = None) -> Tuple[SeasonName, int]:
    name, year = current_season_info(today)
    if name == SeasonName.SEASON_A:
        return SeasonName.SEASON_B, year
    return SeasonName.SEASON_A, year + 1


def previous_season_info(today: date = None) -> Tuple[SeasonName, int]:
    name, year = current_season_info(today)
    if name == SeasonName.SEASON_A:
        return SeasonName.SEASON_B, year - 1
    return SeasonName.SEASON_A, year


def get_active_season(db: Session, cooperative_id: UUID) -> Optional[Season]:
    """Get the active season of a cooperative."""
    return db.query(Season).filter(
        Season.cooperative_id == cooperative_id,
        Season.status == SeasonStatus.ACTIVE
    ).first()


def resolve_season_scope(db: Session, cooperative_id: UUID, season_id: UUID = None) -> Optional[UUID]:
    """Season to scope ledger reads to.

    An explicit season must belong to the cooperative. Without one the
    cooperative's active season is used, or no scoping when none is active.
    """
    if season_id is not None:
        season = db.query(Season).filter(
            Season.id == season_id,
            Season.cooperative_id == cooperative_id
        ).first()
        if not season:
            raise NotFoundError("Season not found in this cooperative")
        return season.id

    active = get_active_season(db, cooperative_id)
    return active.id if active else None


def _get_or_create_season(db: Session, cooperative: Cooperative, name: SeasonName, year: int) -> Season:
    season = db.query(Season).filter(
        Season.cooperative_id == cooperative.id,
        Season.name == name,
        Season.year == year
    ).first()
    if not season:
        season = Season(cooperative_id=cooperative.id, name=name, year=year, status=SeasonStatus.INACTIVE)
        db.add(season)
        db.flush()
        logger.info(f"Created {name.value} {year} for cooperative {cooperative.name}")
    return season


def ensure_current_season(db: Session, cooperative: Cooperative, today: date = None) -> Season:
    """Make the calendar's current season the cooperative's only active one. Does not commit."""
    name, year = current_season_info(today)
    current = _get_or_create_season(db, cooperative, name, year)

    # Deactivate everything except the current season
    db.query(Season).filter(
        Season.cooperative_id == cooperative.id,
        Season.status == SeasonStatus.ACTIVE,
        Season.id != current.id
    ).update({Season.status: SeasonStatus.INACTIVE}, synchronize_session="fetch")

    current.status = SeasonStatus.ACTIVE
    db.flush()
    return current


def rollover_seasons(db: Session, today: date = None) -> List[dict]:
    """Make sure every active cooperative has its current and next season,
    with only the current one active.

    Per-season fee types flagged for auto-apply are assigned to members for a
    season the moment it becomes active. Returns one entry per activation.
    """
    from coopay.services.fees import apply_seasonal_fee_types

    current_name, current_year = current_season_info(today)
    next_name, next_year = next_season_info(today)

    activations: List[dict] = []
    cooperatives = db.query(Cooperative).filter(Cooperative.is_active == True).all()  # noqa: E712
    for coop in cooperatives:
        current = _get_or_create_season(db, coop, current_name, current_year)
        _get_or_create_season(db, coop, next_name, next_year)
        was_active = current.status == SeasonStatus.ACTIVE

        ensure_current_season(db, coop, today)

        if not was_active:
            fees_created = apply_seasonal_fee_types(db, coop.id, current.id)
            activations.append({
                "cooperative_id": str(coop.id),
                "cooperative_name": coop.name,
                "season": current.name.value,
                "year": current.year,
                "fees_created": fees_created,
            })
            logger.info(f"Activated {current.name.value} {current.year} for cooperative {coop.name} ({fees_created} fee(s) applied)")

    db.commit()
    return activations
