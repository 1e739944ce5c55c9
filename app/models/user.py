"""User model — a login belonging to a company."""

import uuid
from enum import StrEnum

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class UserRole(StrEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    # Login is global, so email is unique across companies
    email: str = Field(max_length=320, nullable=False, unique=True, index=True)
    password_hash: str = Field(nullable=False)
    name: str = Field(default="", max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    role: UserRole = Field(default=UserRole.OWNER)
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class UserRead(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    email: str
    name: str
    phone: str | None
    role: UserRole
    is_active: bool


class RegisterRequest(SQLModel):
    """Company + owner signup. ``logo`` is a base64 data URL when sent as JSON."""

    company_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    address: str = Field(min_length=1, max_length=500)
    activity_branch_id: uuid.UUID
    user_phone: str | None = Field(default=None, max_length=50)
    logo: str | None = None


class LoginRequest(SQLModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(SQLModel):
    email: EmailStr


class ForgotPasswordResponse(SQLModel):
    message: str
    reset_token: str | None = None


class ResetPasswordRequest(SQLModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)
