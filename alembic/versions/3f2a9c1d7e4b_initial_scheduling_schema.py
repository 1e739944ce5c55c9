"""initial scheduling schema

Revision ID: 3f2a9c1d7e4b
Revises:
Create Date: 2026-10-19 09:12:44.201733

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e4b'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "activity_branches",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.String(1000), nullable=False),
    )
    op.create_table(
        "default_activity_services",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("activity_branch_id", sa.Uuid(), sa.ForeignKey("activity_branches.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False),
        sa.Column("is_favorite_default", sa.Boolean(), nullable=False),
    )
    op.create_index(
        "ix_default_activity_services_activity_branch_id",
        "default_activity_services", ["activity_branch_id"],
    )

    op.create_table(
        "companies",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("activity_branch_id", sa.Uuid(), sa.ForeignKey("activity_branches.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("logo_url", sa.String(500), nullable=True),
        sa.Column("custom_share_template", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_companies_activity_branch_id", "companies", ["activity_branch_id"])

    op.create_table(
        "users",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.Enum("OWNER", "ADMIN", "MEMBER", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_users_company_id", "users", ["company_id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "password_recovery_tokens",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token_hash", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_password_recovery_tokens_user_id", "password_recovery_tokens", ["user_id"])
    op.create_index(
        "ix_password_recovery_tokens_token_hash",
        "password_recovery_tokens", ["token_hash"], unique=True,
    )

    op.create_table(
        "services",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_from_activity_branch", sa.Boolean(), nullable=False),
        sa.Column("is_system_default", sa.Boolean(), nullable=False),
        sa.Column("activity_branch_id", sa.Uuid(), sa.ForeignKey("activity_branches.id"), nullable=True),
    )
    op.create_index("ix_services_company_id", "services", ["company_id"])

    op.create_table(
        "employees",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("photo_url", sa.String(1000), nullable=True),
    )
    op.create_index("ix_employees_company_id", "employees", ["company_id"])

    op.create_table(
        "employee_service_preferences",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("service_id", sa.Uuid(), sa.ForeignKey("services.id"), nullable=False),
        sa.UniqueConstraint("employee_id", "service_id"),
    )
    op.create_index(
        "ix_employee_service_preferences_employee_id",
        "employee_service_preferences", ["employee_id"],
    )
    op.create_index(
        "ix_employee_service_preferences_service_id",
        "employee_service_preferences", ["service_id"],
    )

    op.create_table(
        "clients",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.UniqueConstraint("company_id", "phone"),
    )
    op.create_index("ix_clients_company_id", "clients", ["company_id"])
    op.create_index("ix_clients_phone", "clients", ["phone"])

    op.create_table(
        "appointments",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("service_id", sa.Uuid(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employees.id"), nullable=True),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("SCHEDULED", "COMPLETED", "CANCELLED", name="appointmentstatus"),
            nullable=False,
        ),
        sa.Column("urgent_reminder_sent_at", sa.DateTime(), nullable=True),
    )
    for column in ("company_id", "client_id", "service_id", "employee_id", "starts_at", "status"):
        op.create_index(f"ix_appointments_{column}", "appointments", [column])

    op.create_table(
        "attendances",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column(
            "appointment_id", sa.Uuid(), sa.ForeignKey("appointments.id"),
            nullable=False, unique=True,
        ),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("attended_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_attendances_company_id", "attendances", ["company_id"])
    op.create_index("ix_attendances_client_id", "attendances", ["client_id"])

    op.create_table(
        "attendance_services",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("attendance_id", sa.Uuid(), sa.ForeignKey("attendances.id"), nullable=False),
        sa.Column("service_id", sa.Uuid(), sa.ForeignKey("services.id"), nullable=False),
        sa.UniqueConstraint("attendance_id", "service_id"),
    )
    op.create_index("ix_attendance_services_attendance_id", "attendance_services", ["attendance_id"])
    op.create_index("ix_attendance_services_service_id", "attendance_services", ["service_id"])

    op.create_table(
        "attendance_employees",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("attendance_id", sa.Uuid(), sa.ForeignKey("attendances.id"), nullable=False),
        sa.Column("service_id", sa.Uuid(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employees.id"), nullable=False),
        sa.UniqueConstraint("attendance_id", "service_id"),
    )
    op.create_index("ix_attendance_employees_attendance_id", "attendance_employees", ["attendance_id"])
    op.create_index("ix_attendance_employees_employee_id", "attendance_employees", ["employee_id"])


def downgrade() -> None:
    op.drop_table("attendance_employees")
    op.drop_table("attendance_services")
    op.drop_table("attendances")
    op.drop_table("appointments")
    op.drop_table("clients")
    op.drop_table("employee_service_preferences")
    op.drop_table("employees")
    op.drop_table("services")
    op.drop_table("password_recovery_tokens")
    op.drop_table("users")
    op.drop_table("companies")
    op.drop_table("default_activity_services")
    op.drop_table("activity_branches")
    sa.Enum(name="appointmentstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
