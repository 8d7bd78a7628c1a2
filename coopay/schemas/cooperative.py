from decimal import Decimal
from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from coopay.models.cooperative import SeasonName, SeasonStatus
from coopay.schemas.common import CamelModel


class CooperativeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=150)
    location: Optional[str] = None


class CooperativeResponse(CamelModel):
    id: UUID
    name: str
    location: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class SeasonResponse(CamelModel):
    id: UUID
    cooperative_id: UUID
    name: SeasonName
    year: int
    status: SeasonStatus


class CurrentSeasonResponse(CamelModel):
    """Calendar season for today, and the cooperative's active season row if any."""
    name: SeasonName
    year: int
    active_season: Optional[SeasonResponse] = None


class CashDeposit(CamelModel):
    amount: Decimal = Field(..., gt=0)
    cooperative_id: Optional[UUID] = None


class CashResponse(CamelModel):
    cooperative_id: UUID
    balance: float
    updated_at: Optional[datetime] = None
