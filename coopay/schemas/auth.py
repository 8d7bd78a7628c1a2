from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from coopay.models.user import UserRoleEnum
from coopay.schemas.common import CamelModel


class UserLogin(CamelModel):
    phone_number: str
    password: str


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"


class UserCreate(CamelModel):
    """Schema for creating a user inside a cooperative."""
    names: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=6, max_length=20)
    password: str = Field(..., min_length=6)
    email: Optional[EmailStr] = None
    role: UserRoleEnum = UserRoleEnum.MEMBER
    cooperative_id: Optional[UUID] = None


class UserResponse(CamelModel):
    id: UUID
    names: str
    phone_number: str
    email: Optional[str] = None
    role: UserRoleEnum
    cooperative_id: Optional[UUID] = None
    is_active: bool
    created_at: Optional[datetime] = None
