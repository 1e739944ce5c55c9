"""ActivityBranch and DefaultActivityService — shared, read-only catalog."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class ActivityBranch(TimestampMixin, SQLModel, table=True):
    __tablename__ = "activity_branches"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False, unique=True)
    description: str = Field(default="", max_length=1000)


class DefaultActivityService(TimestampMixin, SQLModel, table=True):
    __tablename__ = "default_activity_services"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    activity_branch_id: uuid.UUID = Field(
        foreign_key="activity_branches.id", nullable=False, index=True,
    )

    name: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=1000)
    is_favorite_default: bool = Field(default=False)


# ── Pydantic schemas ─────────────────────────────────────────

class DefaultActivityServiceRead(SQLModel):
    id: uuid.UUID
    activity_branch_id: uuid.UUID
    name: str
    description: str
    is_favorite_default: bool


class ActivityBranchRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str
    created_at: datetime


class ActivityBranchDetail(ActivityBranchRead):
    services: list[DefaultActivityServiceRead]


class AvailableDefaultService(DefaultActivityServiceRead):
    """A branch default annotated with whether the company already copied it."""
    already_imported: bool
