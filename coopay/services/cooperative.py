import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from coopay.core.exceptions import ValidationError
from coopay.models.cooperative import Cooperative, CooperativeCash, Season
from coopay.services.season import ensure_current_season

logger = logging.getLogger(__name__)


def create_cooperative(db: Session, name: str, location: str = None) -> Cooperative:
    """Create a cooperative with an empty cash record and its current season active."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if db.query(Cooperative).filter(Cooperative.name == name).first():
        raise ValidationError("Cooperative already exists")

    cooperative = Cooperative(name=name, location=location, is_active=True)
    db.add(cooperative)
    db.flush()
    db.add(CooperativeCash(cooperative_id=cooperative.id))
    season = ensure_current_season(db, cooperative)
    db.commit()
    db.refresh(cooperative)
    logger.info(f"Created cooperative {cooperative.name} with active season {season.name.value} {season.year}")
    return cooperative


def list_cooperatives(db: Session) -> List[Cooperative]:
    return db.query(Cooperative).order_by(Cooperative.name.asc()).all()


def list_seasons(db: Session, cooperative_id: UUID) -> List[Season]:
    return db.query(Season).filter(
        Season.cooperative_id == cooperative_id
    ).order_by(Season.year.desc(), Season.name.desc()).all()
