"""Service model — an offering in a company's own catalog."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Service(TimestampMixin, SQLModel, table=True):
    __tablename__ = "services"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)

    name: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=1000)
    is_favorite: bool = Field(default=False)
    is_active: bool = Field(default=True)

    # Provenance: copied from a branch default, and which branch
    is_from_activity_branch: bool = Field(default=False)
    is_system_default: bool = Field(default=False)
    activity_branch_id: uuid.UUID | None = Field(
        default=None, foreign_key="activity_branches.id", nullable=True,
    )


# ── Pydantic schemas ─────────────────────────────────────────

class ServiceCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=1000)
    is_favorite: bool = False


class ServiceUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    is_favorite: bool | None = None
    is_active: bool | None = None


class ServiceRead(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    description: str
    is_favorite: bool
    is_active: bool
    is_from_activity_branch: bool
    is_system_default: bool
    activity_branch_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class ServiceSummary(SQLModel):
    """Compact service shape embedded in appointment / attendance responses."""
    id: uuid.UUID
    name: str
    description: str | None = None
    is_favorite: bool = False


class ImportServicesRequest(SQLModel):
    activity_branch_id: uuid.UUID


class SelectiveImportRequest(SQLModel):
    activity_branch_id: uuid.UUID
    default_service_ids: list[uuid.UUID] = Field(min_length=1)


class ImportResult(SQLModel):
    message: str
    imported: int
    skipped: int = 0
    total: int = 0


class CsvImportResult(SQLModel):
    message: str
    imported: int
    failed: int
    errors: list[str]
