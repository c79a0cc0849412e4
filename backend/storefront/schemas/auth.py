"""Auth request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.models.user import RoleType


# ── Login / Register ───────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=20)


class UserSummary(BaseModel):
    id: UUID
    email: str
    full_name: str | None
    roles: list[str]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserSummary


class TokenStatus(BaseModel):
    valid: bool
    user_id: UUID
    email: str
    roles: list[str]


# ── Admin user management ──────────────────────────
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=20)
    is_active: bool = True
    roles: list[RoleType] = Field(default_factory=lambda: [RoleType.CUSTOMER], min_length=1)


class UserUpdate(BaseModel):
    full_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=20)
    password: str | None = Field(None, min_length=8)
    is_active: bool | None = None
    roles: list[RoleType] | None = Field(None, min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str | None
    phone: str | None
    is_active: bool
    role_names: list[str] = Field(serialization_alias="roles")
    created_at: datetime
