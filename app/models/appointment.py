"""Appointment model — a booked [starts_at, ends_at) slot."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid
from app.models.client import ClientSummary
from app.models.employee import EmployeeSummary
from app.models.service import ServiceSummary


class AppointmentStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Appointment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "appointments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False, index=True)
    employee_id: uuid.UUID | None = Field(
        default=None, foreign_key="employees.id", nullable=True, index=True,
    )

    # Naive UTC; ends_at is exclusive and strictly after starts_at
    starts_at: datetime = Field(nullable=False, index=True)
    ends_at: datetime = Field(nullable=False)

    status: AppointmentStatus = Field(default=AppointmentStatus.SCHEDULED, index=True)

    # Set once the hourly sweep has sent the "starting soon" reminder
    urgent_reminder_sent_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class AppointmentCreate(SQLModel):
    client_name: str = Field(min_length=1, max_length=255)
    client_phone: str = Field(min_length=1, max_length=50)
    service_id: uuid.UUID
    employee_id: uuid.UUID | None = None
    starts_at: datetime
    ends_at: datetime


class AppointmentUpdate(SQLModel):
    service_id: uuid.UUID | None = None
    employee_id: uuid.UUID | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    status: AppointmentStatus | None = None

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> "AppointmentUpdate":
        for name in ("service_id", "starts_at", "ends_at", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class AppointmentRead(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    client: ClientSummary
    service: ServiceSummary
    employee: EmployeeSummary | None = None
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime


class AvailabilityRead(SQLModel):
    available: bool
    message: str


class CalendarDay(SQLModel):
    date: str
    total_appointments: int
    overdue_count: int
    appointments: list[AppointmentRead]


class CalendarRead(SQLModel):
    days: list[CalendarDay]
    total_appointments: int
    total_days: int


class ReminderRunResult(SQLModel):
    sent: int
    errors: int
    skipped: int = 0
