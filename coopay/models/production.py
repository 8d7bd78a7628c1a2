from sqlalchemy import Column, String, DateTime, Integer, Numeric, ForeignKey, CheckConstraint, Enum as SQLEnum, Uuid, text
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from coopay.db.base import Base
import enum


class ProductionPaymentStatus(str, enum.Enum):
    """Whether a production has been consumed by a settled payment."""
    PENDING = "pending"
    PAID = "paid"


class Product(Base):
    """Crop or product a cooperative buys from its members."""
    __tablename__ = "product"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    product_name = Column(String(100), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))


class Production(Base):
    """Member production delivered to the cooperative in a season."""
    __tablename__ = "production"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    season_id = Column(Uuid(as_uuid=True), ForeignKey("season.id"), nullable=False, index=True)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("product.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    total_price = Column(Numeric(15, 2), nullable=False)
    payment_status = Column(SQLEnum(ProductionPaymentStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=ProductionPaymentStatus.PENDING, nullable=False)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payment.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    product = relationship("Product")
    member = relationship("User", foreign_keys=[member_id])

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_production_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_production_unit_price_non_negative"),
    )
