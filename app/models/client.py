"""Client model — a company's customer, looked up by phone."""

import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Client(TimestampMixin, SQLModel, table=True):
    __tablename__ = "clients"
    __table_args__ = (UniqueConstraint("company_id", "phone"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)

    name: str = Field(max_length=255, nullable=False)
    phone: str = Field(max_length=50, nullable=False, index=True)
    email: str | None = Field(default=None, max_length=320)
    address: str | None = Field(default=None, max_length=500)


# ── Pydantic schemas ─────────────────────────────────────────

class ClientCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    address: str | None = Field(default=None, max_length=500)


class ClientUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = Field(default=None, max_length=320)
    address: str | None = Field(default=None, max_length=500)


class ClientRead(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    phone: str
    email: str | None
    address: str | None
    created_at: datetime
    updated_at: datetime


class ClientReportRow(ClientRead):
    total_attendances: int = 0
    last_attendance_at: datetime | None = None


class ClientSummary(SQLModel):
    id: uuid.UUID
    name: str
    phone: str
