from sqlalchemy import Column, DateTime, Integer, Numeric, ForeignKey, CheckConstraint, Index, Enum as SQLEnum, Uuid, text, func
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
import uuid
from coopay.db.base import Base
import enum


class PaymentStatus(str, enum.Enum):
    """Payment status. Moves pending -> partial -> paid and never regresses."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class Payment(Base):
    """Settlement of a member's net earnings.

    A payment with ``amount_remaining_to_pay > 0`` is open; at most one open
    payment may exist per (member, cooperative).
    """
    __tablename__ = "payment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    season_id = Column(Uuid(as_uuid=True), ForeignKey("season.id"), nullable=True, index=True)
    gross_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # Production value at opening
    total_deductions = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # Fees + loans at opening
    amount_due = Column(Numeric(15, 2), nullable=False)
    amount_paid = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # Cumulative
    amount_remaining_to_pay = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    status = Column(SQLEnum(PaymentStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=PaymentStatus.PENDING, nullable=False)
    processed_by = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    member = relationship("User", foreign_keys=[member_id])
    transactions = relationship("PaymentTransaction", back_populates="payment", order_by="PaymentTransaction.transaction_date")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("amount_due >= 0", name="ck_payment_amount_due_non_negative"),
        CheckConstraint("amount_paid >= 0", name="ck_payment_amount_paid_non_negative"),
        CheckConstraint("amount_remaining_to_pay >= 0", name="ck_payment_remaining_non_negative"),
        # One open payment slot per member and cooperative
        Index(
            "uq_payment_open_slot",
            "member_id",
            "cooperative_id",
            unique=True,
            postgresql_where=text("amount_remaining_to_pay > 0"),
            sqlite_where=text("amount_remaining_to_pay > 0"),
        ),
    )

    @property
    def is_open(self) -> bool:
        return Decimal(str(self.amount_remaining_to_pay or 0)) > 0


class PaymentTransaction(Base):
    """One settlement call against a payment."""
    __tablename__ = "payment_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payment.id"), nullable=False, index=True)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    amount_paid = Column(Numeric(15, 2), nullable=False)
    amount_remaining_to_pay = Column(Numeric(15, 2), nullable=False)
    processed_by = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=True)
    transaction_date = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    payment = relationship("Payment", back_populates="transactions")
