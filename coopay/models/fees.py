from sqlalchemy import Column, String, Boolean, DateTime, Text, Numeric, ForeignKey, CheckConstraint, UniqueConstraint, Enum as SQLEnum, Uuid, text
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
import uuid
from coopay.db.base import Base
import enum


class FeeTypeStatus(str, enum.Enum):
    """Fee type status."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class FeeStatus(str, enum.Enum):
    """Fee status, derived from owed and paid amounts."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class FeeType(Base):
    """Fee definition a cooperative charges its members."""
    __tablename__ = "fee_type"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(SQLEnum(FeeTypeStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=FeeTypeStatus.ACTIVE, nullable=False)
    is_per_season = Column(Boolean, default=True, nullable=False)  # True = fee is charged once per season
    auto_apply_on_create = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    fees = relationship("Fee", back_populates="fee_type")

    __table_args__ = (
        UniqueConstraint("cooperative_id", "name", name="uq_fee_type_cooperative_name"),
        CheckConstraint("amount >= 0", name="ck_fee_type_amount_non_negative"),
    )


class Fee(Base):
    """Fee owed by a member. Mutated only by payment settlement."""
    __tablename__ = "fee"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    season_id = Column(Uuid(as_uuid=True), ForeignKey("season.id"), nullable=True, index=True)  # NULL for non-seasonal fees
    fee_type_id = Column(Uuid(as_uuid=True), ForeignKey("fee_type.id"), nullable=False, index=True)
    amount_owed = Column(Numeric(15, 2), nullable=False)
    amount_paid = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    status = Column(SQLEnum(FeeStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=FeeStatus.UNPAID, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payment.id"), nullable=True, index=True)  # Payment this fee is being settled by
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    fee_type = relationship("FeeType", back_populates="fees")
    member = relationship("User", foreign_keys=[member_id])

    __table_args__ = (
        UniqueConstraint("member_id", "fee_type_id", "season_id", name="uq_fee_member_type_season"),
        CheckConstraint("amount_owed >= 0", name="ck_fee_amount_owed_non_negative"),
        CheckConstraint("amount_paid >= 0 AND amount_paid <= amount_owed", name="ck_fee_amount_paid_range"),
    )

    @property
    def remaining_amount(self) -> Decimal:
        return Decimal(str(self.amount_owed)) - Decimal(str(self.amount_paid or 0))

    def refresh_status(self) -> None:
        """Derive status (and paid_at) from the owed and paid amounts."""
        remaining = self.remaining_amount
        if remaining <= 0:
            self.status = FeeStatus.PAID
            self.paid_at = self.paid_at or datetime.utcnow()
        elif Decimal(str(self.amount_paid or 0)) > 0:
            self.status = FeeStatus.PARTIAL
            self.paid_at = None
        else:
            self.status = FeeStatus.UNPAID
            self.paid_at = None
