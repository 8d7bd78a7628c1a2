from decimal import Decimal
from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from coopay.models.loan import LoanStatus
from coopay.schemas.common import CamelModel


class LoanCreate(CamelModel):
    """Schema for extending a loan to a member."""
    user_id: UUID
    amount: Decimal = Field(..., gt=0, description="Principal amount")
    interest_rate: Decimal = Field(Decimal("0"), ge=0, description="Interest percentage added to the principal")
    season_id: Optional[UUID] = None
    cooperative_id: Optional[UUID] = None


class LoanResponse(CamelModel):
    id: UUID
    member_id: UUID
    cooperative_id: UUID
    season_id: Optional[UUID] = None
    principal_amount: float
    interest_rate: float
    amount_owed: float
    amount_paid: float
    outstanding_amount: float
    status: LoanStatus
    repaid_at: Optional[datetime] = None
    payment_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class LoanTransactionResponse(CamelModel):
    id: UUID
    loan_id: UUID
    payment_id: Optional[UUID] = None
    amount_paid: float
    amount_remaining_to_pay: float
    transaction_date: datetime
