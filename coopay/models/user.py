from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum, Uuid, text
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from coopay.db.base import Base
import enum


class UserRoleEnum(str, enum.Enum):
    """User role within the platform."""
    SUPERADMIN = "superadmin"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"
    MEMBER = "member"


class User(Base):
    """Platform user. Members and staff belong to exactly one cooperative."""
    __tablename__ = "user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    names = Column(String(100), nullable=False)
    phone_number = Column(String(20), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRoleEnum, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=UserRoleEnum.MEMBER, nullable=False)
    cooperative_id = Column(Uuid(as_uuid=True), ForeignKey("cooperative.id"), nullable=True, index=True)  # NULL only for superadmin
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    cooperative = relationship("Cooperative", back_populates="users")
