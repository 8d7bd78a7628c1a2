from decimal import Decimal
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from coopay.core.money import to_number
from coopay.models.payment import PaymentStatus
from coopay.schemas.common import CamelModel
from coopay.schemas.fees import FeeResponse
from coopay.schemas.loan import LoanResponse


class PaymentProcessRequest(CamelModel):
    """Settle part or all of a member's amount due. The amount due itself is never sent."""
    user_id: UUID
    amount_paid: Decimal = Field(..., description="Amount handed to the member")
    cooperative_id: Optional[UUID] = None
    season_id: Optional[UUID] = None


class PaymentTransactionResponse(CamelModel):
    id: UUID
    payment_id: UUID
    member_id: UUID
    cooperative_id: UUID
    amount_paid: float
    amount_remaining_to_pay: float
    processed_by: Optional[UUID] = None
    transaction_date: datetime


class PaymentResponse(CamelModel):
    id: UUID
    member_id: UUID
    cooperative_id: UUID
    season_id: Optional[UUID] = None
    gross_amount: float
    total_deductions: float
    amount_due: float
    amount_paid: float
    amount_remaining_to_pay: float
    status: PaymentStatus
    processed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentWithTransactions(PaymentResponse):
    transactions: List[PaymentTransactionResponse] = []


class PaymentSummaryResponse(CamelModel):
    """Member payment summary with the rows behind it."""
    total_production: float
    total_unpaid_fees: float
    total_loans: float
    previous_remaining: float
    current_net: float
    amount_due: float
    existing_partial_payment: Optional[PaymentResponse] = None
    fees: List[FeeResponse] = []
    loans: List[LoanResponse] = []
    payments: List[PaymentResponse] = []

    @classmethod
    def from_details(cls, details):
        """Build the response from a ``PaymentSummaryDetails``."""
        summary = details.summary
        open_payment = summary.existing_partial_payment
        return cls(
            total_production=to_number(summary.total_production),
            total_unpaid_fees=to_number(summary.total_unpaid_fees),
            total_loans=to_number(summary.total_loans),
            previous_remaining=to_number(summary.previous_remaining),
            current_net=to_number(summary.current_net),
            amount_due=to_number(summary.amount_due),
            existing_partial_payment=PaymentResponse.model_validate(open_payment) if open_payment else None,
            fees=[FeeResponse.model_validate(f) for f in details.fees],
            loans=[LoanResponse.model_validate(l) for l in details.loans],
            payments=[PaymentResponse.model_validate(p) for p in details.payments],
        )
