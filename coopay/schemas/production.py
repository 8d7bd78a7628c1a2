from decimal import Decimal
from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from coopay.models.production import ProductionPaymentStatus
from coopay.schemas.common import CamelModel


class ProductCreate(CamelModel):
    product_name: str = Field(..., min_length=1, max_length=100)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    cooperative_id: Optional[UUID] = None


class ProductResponse(CamelModel):
    id: UUID
    cooperative_id: UUID
    product_name: str
    unit_price: Optional[float] = None


class ProductionCreate(CamelModel):
    """Schema for recording a member's delivery."""
    user_id: UUID
    product_id: UUID
    quantity: int
    unit_price: Optional[Decimal] = Field(None, ge=0)
    season_id: Optional[UUID] = None
    cooperative_id: Optional[UUID] = None


class ProductionResponse(CamelModel):
    id: UUID
    member_id: UUID
    cooperative_id: UUID
    season_id: UUID
    product_id: UUID
    quantity: int
    unit_price: float
    total_price: float
    payment_status: ProductionPaymentStatus
    payment_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
