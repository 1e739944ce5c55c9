"""Attendance model — the realized visit for one appointment."""

import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.appointment import AppointmentStatus
from app.models.base import TimestampMixin, new_uuid
from app.models.client import ClientSummary
from app.models.employee import EmployeeSummary
from app.models.service import ServiceSummary


class Attendance(TimestampMixin, SQLModel, table=True):
    __tablename__ = "attendances"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    # One attendance per appointment
    appointment_id: uuid.UUID = Field(foreign_key="appointments.id", nullable=False, unique=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", nullable=False, index=True)

    # Copied from the appointment start when the attendance is opened
    attended_at: datetime = Field(nullable=False)

    # NULL while open; once set the attendance is immutable
    completed_at: datetime | None = Field(default=None)


class AttendanceService(TimestampMixin, SQLModel, table=True):
    """A service actually performed during an attendance."""

    __tablename__ = "attendance_services"
    __table_args__ = (UniqueConstraint("attendance_id", "service_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    attendance_id: uuid.UUID = Field(foreign_key="attendances.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False, index=True)


class AttendanceEmployee(TimestampMixin, SQLModel, table=True):
    """Which employee performed a given service of an attendance."""

    __tablename__ = "attendance_employees"
    __table_args__ = (UniqueConstraint("attendance_id", "service_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    attendance_id: uuid.UUID = Field(foreign_key="attendances.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False)
    employee_id: uuid.UUID = Field(foreign_key="employees.id", nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class ServiceEmployeePair(SQLModel):
    service_id: uuid.UUID
    employee_id: uuid.UUID


class AttendanceCreate(SQLModel):
    appointment_id: uuid.UUID
    service_ids: list[uuid.UUID] = Field(min_length=1)
    service_employees: list[ServiceEmployeePair] | None = None


class AttendanceUpdate(SQLModel):
    service_ids: list[uuid.UUID] | None = Field(default=None, min_length=1)
    service_employees: list[ServiceEmployeePair] | None = None


class AttendanceServiceAdd(SQLModel):
    service_id: uuid.UUID
    employee_id: uuid.UUID | None = None


class AttendanceServiceRead(SQLModel):
    id: uuid.UUID
    service: ServiceSummary
    employee: EmployeeSummary | None = None


class AppointmentRef(SQLModel):
    id: uuid.UUID
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus


class AttendanceRead(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    client: ClientSummary
    appointment: AppointmentRef
    attended_at: datetime
    completed_at: datetime | None
    services: list[AttendanceServiceRead]
    created_at: datetime
    updated_at: datetime
