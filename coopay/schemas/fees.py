from decimal import Decimal
from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from coopay.models.fees import FeeStatus, FeeTypeStatus
from coopay.schemas.common import CamelModel


class FeeTypeCreate(CamelModel):
    """Schema for creating a fee type."""
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    description: Optional[str] = None
    is_per_season: bool = True
    auto_apply_on_create: bool = True
    cooperative_id: Optional[UUID] = None


class FeeTypeResponse(CamelModel):
    id: UUID
    cooperative_id: UUID
    name: str
    amount: float
    description: Optional[str] = None
    status: FeeTypeStatus
    is_per_season: bool
    auto_apply_on_create: bool


class FeeAssign(CamelModel):
    """Assign a fee type to one member, or to every member when ``userId`` is omitted."""
    fee_type_id: UUID
    user_id: Optional[UUID] = None
    season_id: Optional[UUID] = None
    cooperative_id: Optional[UUID] = None


class FeeResponse(CamelModel):
    id: UUID
    member_id: UUID
    cooperative_id: UUID
    season_id: Optional[UUID] = None
    fee_type_id: UUID
    amount_owed: float
    amount_paid: float
    remaining_amount: float
    status: FeeStatus
    paid_at: Optional[datetime] = None
    payment_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
