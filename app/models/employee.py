"""Employee model and its service-preference link table."""

import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Employee(TimestampMixin, SQLModel, table=True):
    __tablename__ = "employees"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)

    name: str = Field(max_length=255, nullable=False)
    photo_url: str | None = Field(default=None, max_length=1000)


class EmployeeServicePreference(TimestampMixin, SQLModel, table=True):
    """Display/sorting hint only — never a hard scheduling constraint."""

    __tablename__ = "employee_service_preferences"
    __table_args__ = (UniqueConstraint("employee_id", "service_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    employee_id: uuid.UUID = Field(foreign_key="employees.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class EmployeeCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    photo_url: str | None = Field(default=None, max_length=1000)


class EmployeeUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    photo_url: str | None = Field(default=None, max_length=1000)


class PreferredService(SQLModel):
    id: uuid.UUID
    name: str
    description: str


class EmployeeRead(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    photo_url: str | None
    preferred_services: list[PreferredService] = []
    created_at: datetime
    updated_at: datetime


class EmployeeSummary(SQLModel):
    """Compact employee shape embedded in appointment / attendance responses."""
    id: uuid.UUID
    name: str
    photo_url: str | None = None


class ServicePreferencesUpdate(SQLModel):
    service_ids: list[uuid.UUID]
