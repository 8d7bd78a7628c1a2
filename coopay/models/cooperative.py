from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, ForeignKey, CheckConstraint, UniqueConstraint, Enum as SQLEnum, Uuid, text
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
import uuid
from coopay.db.base import Base
import enum


class SeasonName(str, enum.Enum):
    """Agricultural seasons."""
    SEASON_A = "Season-A"
    SEASON_B = "Season-B"


class SeasonStatus(str, enum.Enum):
    """Season status. Only one season per cooperative is active."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Cooperative(Base):
    """Agricultural cooperative."""
    __tablename__ = "cooperative"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False, unique=True, index=True)
    location = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    users = relationship("User", back_populates="cooperative")
    seasons = relationship("Season", back_populates="cooperative")
    cash = relationship("CooperativeCash", back_populates="cooperative", uselist=False)


class Season(Base):
    """Cooperative season (Season-A / Season-B of a given year)."""
    __tablename__ = "season"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, index=True)
    name = Column(SQLEnum(SeasonName, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(SQLEnum(SeasonStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=SeasonStatus.INACTIVE, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    cooperative = relationship("Cooperative", back_populates="seasons")

    __table_args__ = (
        UniqueConstraint("cooperative_id", "name", "year", name="uq_season_cooperative_name_year"),
        CheckConstraint("year >= 2000 AND year <= 2100", name="ck_season_year_range"),
    )


class CooperativeCash(Base):
    """Cash on hand a cooperative can pay members from."""
    __tablename__ = "cooperative_cash"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=False, unique=True, index=True)
    balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    cooperative = relationship("Cooperative", back_populates="cash")

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_cooperative_cash_non_negative"),
    )
