"""Company model — tenant root and isolation boundary."""

import uuid
from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Company(TimestampMixin, SQLModel, table=True):
    __tablename__ = "companies"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    activity_branch_id: uuid.UUID = Field(foreign_key="activity_branches.id", nullable=False, index=True)

    name: str = Field(max_length=255, nullable=False)
    email: str = Field(default="", max_length=320)
    phone: str = Field(default="", max_length=50)
    address: str = Field(default="", max_length=500)

    # Relative URL under /uploads, set once a logo has been stored
    logo_url: str | None = Field(default=None, max_length=500)

    # Share text with {companyName}-style tokens; NULL means "use the default"
    custom_share_template: str | None = Field(default=None, sa_column=Column(Text, nullable=True))

    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class CompanyRead(SQLModel):
    id: uuid.UUID
    activity_branch_id: uuid.UUID
    name: str
    email: str
    phone: str
    address: str
    logo_url: str | None
    is_active: bool
    created_at: datetime


class ShareTemplateUpdate(SQLModel):
    custom_share_template: str = Field(min_length=1, max_length=5000)


class ShareTemplateRead(SQLModel):
    custom_share_template: str
    default_template: str
    available_variables: list[str]


class ShareTextRead(SQLModel):
    share_text: str
    attendance_id: uuid.UUID
    shared_at: datetime
