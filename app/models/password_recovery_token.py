"""PasswordRecoveryToken model — single-use reset tokens."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class PasswordRecoveryToken(TimestampMixin, SQLModel, table=True):
    __tablename__ = "password_recovery_tokens"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)

    # SHA-256 of the raw token; the raw value only travels by email
    token_hash: str = Field(nullable=False, unique=True, index=True)

    expires_at: datetime = Field(nullable=False)
    used: bool = Field(default=False)
