from sqlalchemy import Column, DateTime, Numeric, ForeignKey, CheckConstraint, Enum as SQLEnum, Uuid, text
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
import uuid
from coopay.db.base import Base
import enum


class LoanStatus(str, enum.Enum):
    """Loan status."""
    PENDING = "pending"
    REPAID = "repaid"


class Loan(Base):
    """Loan extended to a member (inputs on credit, cash advance)."""
    __tablename__ = "loan"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    season_id = Column(Uuid(as_uuid=True), ForeignKey("season.id"), nullable=True, index=True)
    principal_amount = Column(Numeric(15, 2), nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))  # Percentage
    amount_owed = Column(Numeric(15, 2), nullable=False)  # Principal plus interest
    amount_paid = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    status = Column(SQLEnum(LoanStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=LoanStatus.PENDING, nullable=False)
    repaid_at = Column(DateTime, nullable=True)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payment.id"), nullable=True, index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    member = relationship("User", foreign_keys=[member_id])
    transactions = relationship("LoanTransaction", back_populates="loan", order_by="LoanTransaction.transaction_date")

    __table_args__ = (
        CheckConstraint("amount_owed >= 0", name="ck_loan_amount_owed_non_negative"),
        CheckConstraint("amount_paid >= 0 AND amount_paid <= amount_owed", name="ck_loan_amount_paid_range"),
    )

    @property
    def outstanding_amount(self) -> Decimal:
        return Decimal(str(self.amount_owed)) - Decimal(str(self.amount_paid or 0))


class LoanTransaction(Base):
    """Reduction of a loan through payment settlement."""
    __tablename__ = "loan_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(Uuid(as_uuid=True), ForeignKey("loan.id"), nullable=False, index=True)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payment.id"), nullable=True, index=True)
    amount_paid = Column(Numeric(15, 2), nullable=False)
    amount_remaining_to_pay = Column(Numeric(15, 2), nullable=False)
    transaction_date = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    loan = relationship("Loan", back_populates="transactions")
