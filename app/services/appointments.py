"""Appointment booking, conflict detection, calendar and reminder dispatch.

Every public method takes the caller's ``company_id`` and filters by it;
nothing here reads tenant identity from ambient state.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import Settings, get_settings
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatus,
    AppointmentUpdate,
    AvailabilityRead,
    CalendarRead,
    ReminderRunResult,
)
from app.models.base import as_naive_utc, utcnow
from app.models.client import Client
from app.models.company import Company
from app.models.employee import Employee, EmployeeServicePreference
from app.models.pagination import Page, PageParams
from app.models.service import Service
from app.services.notifications import AppointmentNotice, Notifier
from app.services.scheduling import (
    URGENT_WINDOW,
    day_bounds,
    group_calendar,
    month_bounds,
    overlap_clause,
    reminder_window,
)
from app.services.shaping import (
    client_summary,
    employee_summary,
    fetch_page,
    load_by_ids,
    service_summary,
)
from app.services.tenancy import delete_or_400, get_owned_or_404

logger = logging.getLogger(__name__)

SERVICE_NOT_FOUND = "Service not found or does not belong to your company"
EMPLOYEE_NOT_FOUND = "Employee not found or does not belong to your company"
APPOINTMENT_NOT_FOUND = "Appointment not found"


class AppointmentsService:
    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.notifier = notifier
        self.settings = settings or get_settings()

    # ── Booking ───────────────────────────────────────────────

    async def create(self, data: AppointmentCreate, company_id: uuid.UUID) -> AppointmentRead:
        await get_owned_or_404(self.session, Service, data.service_id, company_id, SERVICE_NOT_FOUND)
        if data.employee_id is not None:
            await get_owned_or_404(
                self.session, Employee, data.employee_id, company_id, EMPLOYEE_NOT_FOUND,
            )

        starts_at = as_naive_utc(data.starts_at)
        ends_at = as_naive_utc(data.ends_at)
        if ends_at <= starts_at:
            raise BadRequestError("ends_at must be after starts_at")

        company = await self._lock_company(company_id)
        await self._ensure_no_conflict(company_id, starts_at, ends_at, data.employee_id)

        client = await self._find_or_create_client(company_id, data.client_name, data.client_phone)
        appointment = Appointment(
            company_id=company_id,
            client_id=client.id,
            service_id=data.service_id,
            employee_id=data.employee_id,
            starts_at=starts_at,
            ends_at=ends_at,
        )
        self.session.add(appointment)
        await self.session.commit()
        await self.session.refresh(appointment)
        logger.info("Appointment %s booked for company %s", appointment.id, company_id)

        await self._notify_confirmed(appointment, company)
        return (await self._shape([appointment]))[0]

    async def update(
        self, appointment_id: uuid.UUID, patch: AppointmentUpdate, company_id: uuid.UUID,
    ) -> AppointmentRead:
        appointment = await get_owned_or_404(
            self.session, Appointment, appointment_id, company_id, APPOINTMENT_NOT_FOUND,
        )
        if appointment.status != AppointmentStatus.SCHEDULED:
            raise BadRequestError(
                f"Cannot change an appointment with status {appointment.status.value}"
            )

        changes = patch.model_dump(exclude_unset=True)

        if "service_id" in changes:
            await get_owned_or_404(
                self.session, Service, changes["service_id"], company_id, SERVICE_NOT_FOUND,
            )
        if changes.get("employee_id") is not None:
            await get_owned_or_404(
                self.session, Employee, changes["employee_id"], company_id, EMPLOYEE_NOT_FOUND,
            )

        for key in ("starts_at", "ends_at"):
            if key in changes:
                changes[key] = as_naive_utc(changes[key])
        starts_at = changes.get("starts_at", appointment.starts_at)
        ends_at = changes.get("ends_at", appointment.ends_at)
        if ends_at <= starts_at:
            raise BadRequestError("ends_at must be after starts_at")

        employee_id = changes.get("employee_id", appointment.employee_id)
        status = changes.get("status", appointment.status)
        moved = (
            starts_at != appointment.starts_at
            or ends_at != appointment.ends_at
            or employee_id != appointment.employee_id
        )
        if status == AppointmentStatus.SCHEDULED and moved:
            await self._lock_company(company_id)
            await self._ensure_no_conflict(
                company_id, starts_at, ends_at, employee_id, exclude_id=appointment.id,
            )

        for field, value in changes.items():
            setattr(appointment, field, value)
        appointment.updated_at = utcnow()
        self.session.add(appointment)
        await self.session.commit()
        await self.session.refresh(appointment)
        return (await self._shape([appointment]))[0]

    async def delete(self, appointment_id: uuid.UUID, company_id: uuid.UUID) -> None:
        appointment = await get_owned_or_404(
            self.session, Appointment, appointment_id, company_id, APPOINTMENT_NOT_FOUND,
        )
        await delete_or_400(self.session, appointment, "Appointment already has an attendance")

    # ── Reads ─────────────────────────────────────────────────

    async def list_appointments(
        self, company_id: uuid.UUID, params: PageParams,
    ) -> Page[AppointmentRead]:
        stmt = (
            select(Appointment)
            .where(Appointment.company_id == company_id)
            .order_by(Appointment.starts_at.asc())  # type: ignore[union-attr]
        )
        rows, total = await fetch_page(self.session, stmt, params)
        return Page[AppointmentRead].build(await self._shape(rows), params, total)

    async def get(self, appointment_id: uuid.UUID, company_id: uuid.UUID) -> AppointmentRead:
        appointment = await get_owned_or_404(
            self.session, Appointment, appointment_id, company_id, APPOINTMENT_NOT_FOUND,
        )
        return (await self._shape([appointment]))[0]

    async def check_availability(
        self,
        company_id: uuid.UUID,
        starts_at: datetime,
        ends_at: datetime,
        employee_id: uuid.UUID | None = None,
    ) -> AvailabilityRead:
        conflict = await self._find_conflict(
            company_id, as_naive_utc(starts_at), as_naive_utc(ends_at), employee_id,
        )
        if conflict is None:
            return AvailabilityRead(available=True, message="Time slot available")
        return AvailabilityRead(
            available=False, message="Time slot conflicts with another appointment",
        )

    async def calendar(
        self,
        company_id: uuid.UUID,
        start: datetime | None = None,
        end: datetime | None = None,
        now: datetime | None = None,
    ) -> CalendarRead:
        """Appointments in [start, end] grouped by UTC day; defaults to the current month."""
        now = now or utcnow()
        month_start, month_end = month_bounds(now)
        start = as_naive_utc(start) if start else month_start
        end = as_naive_utc(end) if end else month_end

        stmt = (
            select(Appointment)
            .where(
                Appointment.company_id == company_id,
                Appointment.starts_at >= start,
                Appointment.starts_at <= end,
            )
            .order_by(Appointment.starts_at.asc())  # type: ignore[union-attr]
        )
        result = await self.session.execute(stmt)
        shaped = await self._shape(result.scalars().all())
        days = group_calendar(shaped, now)
        return CalendarRead(days=days, total_appointments=len(shaped), total_days=len(days))

    async def by_date(self, company_id: uuid.UUID, day: date) -> list[AppointmentRead]:
        start, end = day_bounds(day)
        stmt = (
            select(Appointment)
            .where(
                Appointment.company_id == company_id,
                Appointment.starts_at >= start,
                Appointment.starts_at < end,
            )
            .order_by(Appointment.starts_at.asc())  # type: ignore[union-attr]
        )
        result = await self.session.execute(stmt)
        return await self._shape(result.scalars().all())

    async def overdue(
        self, company_id: uuid.UUID, now: datetime | None = None,
    ) -> list[AppointmentRead]:
        stmt = (
            select(Appointment)
            .where(
                Appointment.company_id == company_id,
                Appointment.status == AppointmentStatus.SCHEDULED,
                Appointment.starts_at < (now or utcnow()),
            )
            .order_by(Appointment.starts_at.desc())  # type: ignore[union-attr]
        )
        result = await self.session.execute(stmt)
        return await self._shape(result.scalars().all())

    async def services_by_favorites(self, company_id: uuid.UUID) -> list[Service]:
        stmt = (
            select(Service)
            .where(Service.company_id == company_id)
            .order_by(Service.is_favorite.desc(), Service.name.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def employees_by_service(
        self, company_id: uuid.UUID, service_id: uuid.UUID,
    ) -> list[Employee]:
        """Employees who prefer ``service_id`` first, then everyone else; each group by name."""
        result = await self.session.execute(
            select(Employee)
            .where(Employee.company_id == company_id)
            .order_by(Employee.name.asc())  # type: ignore[attr-defined]
        )
        employees = list(result.scalars().all())

        prefs = await self.session.execute(
            select(EmployeeServicePreference.employee_id).where(
                EmployeeServicePreference.service_id == service_id,
            )
        )
        preferred = set(prefs.scalars().all())
        return [e for e in employees if e.id in preferred] + [
            e for e in employees if e.id not in preferred
        ]

    # ── Reminders ─────────────────────────────────────────────

    async def send_reminders(
        self, company_id: uuid.UUID, now: datetime | None = None,
    ) -> ReminderRunResult:
        """Remind every client with a scheduled appointment tomorrow.

        "Tomorrow" is the next calendar day in ``settings.scheduler_timezone``.
        A failed send is logged and counted; it never stops the batch.
        """
        start, end = reminder_window(now or utcnow(), self.settings.scheduler_timezone)
        stmt = (
            select(Appointment)
            .where(
                Appointment.company_id == company_id,
                Appointment.status == AppointmentStatus.SCHEDULED,
                Appointment.starts_at >= start,
                Appointment.starts_at < end,
            )
            .order_by(Appointment.starts_at.asc())  # type: ignore[union-attr]
        )
        appointments = list((await self.session.execute(stmt)).scalars().all())
        result = await self._dispatch(company_id, appointments, self.notifier.appointment_reminder)
        logger.info(
            "Reminders for company %s: %d sent, %d skipped, %d errors",
            company_id, result.sent, result.skipped, result.errors,
        )
        return result

    async def send_urgent_reminders(
        self, company_id: uuid.UUID, now: datetime | None = None,
    ) -> ReminderRunResult:
        """Notify appointments starting within the next hour, once each."""
        now = now or utcnow()
        stmt = (
            select(Appointment)
            .where(
                Appointment.company_id == company_id,
                Appointment.status == AppointmentStatus.SCHEDULED,
                Appointment.starts_at >= now,
                Appointment.starts_at < now + URGENT_WINDOW,
                Appointment.urgent_reminder_sent_at.is_(None),  # type: ignore[union-attr]
            )
            .order_by(Appointment.starts_at.asc())  # type: ignore[union-attr]
        )
        appointments = list((await self.session.execute(stmt)).scalars().all())
        result = await self._dispatch(
            company_id, appointments, self.notifier.appointment_starting_soon, mark_urgent=now,
        )
        if result.sent or result.skipped:
            await self.session.commit()
        return result

    async def _dispatch(
        self,
        company_id: uuid.UUID,
        appointments: Sequence[Appointment],
        send: Callable[[AppointmentNotice], Awaitable[bool]],
        mark_urgent: datetime | None = None,
    ) -> ReminderRunResult:
        if not appointments:
            return ReminderRunResult(sent=0, errors=0, skipped=0)

        company = await self.session.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company not found")
        notices = await self._notices(company, appointments)

        sent = errors = skipped = 0
        for appointment, notice in zip(appointments, notices):
            try:
                delivered = await send(notice)
            except Exception:
                errors += 1
                logger.exception("Reminder for appointment %s failed", appointment.id)
                continue
            if delivered:
                sent += 1
            else:
                skipped += 1
            if mark_urgent is not None:
                appointment.urgent_reminder_sent_at = mark_urgent
                self.session.add(appointment)
        return ReminderRunResult(sent=sent, errors=errors, skipped=skipped)

    # ── Internal ──────────────────────────────────────────────

    async def _lock_company(self, company_id: uuid.UUID) -> Company:
        """Serialize bookings per company until the current transaction ends."""
        result = await self.session.execute(
            select(Company).where(Company.id == company_id).with_for_update()
        )
        company = result.scalar_one_or_none()
        if company is None:
            raise NotFoundError("Company not found")
        return company

    async def _find_conflict(
        self,
        company_id: uuid.UUID,
        starts_at: datetime,
        ends_at: datetime,
        employee_id: uuid.UUID | None,
        exclude_id: uuid.UUID | None = None,
    ) -> Appointment | None:
        stmt = select(Appointment).where(
            Appointment.company_id == company_id,
            Appointment.status == AppointmentStatus.SCHEDULED,
            overlap_clause(starts_at, ends_at),
        )
        if employee_id is not None:
            # Unassigned bookings block every employee
            stmt = stmt.where(
                or_(
                    Appointment.employee_id == employee_id,
                    Appointment.employee_id.is_(None),  # type: ignore[union-attr]
                )
            )
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def _ensure_no_conflict(
        self,
        company_id: uuid.UUID,
        starts_at: datetime,
        ends_at: datetime,
        employee_id: uuid.UUID | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        conflict = await self._find_conflict(company_id, starts_at, ends_at, employee_id, exclude_id)
        if conflict is None:
            return
        if employee_id is not None and conflict.employee_id == employee_id:
            employee = await self.session.get(Employee, employee_id)
            name = employee.name if employee else "selected employee"
            raise ConflictError(f"Employee {name} already has an appointment overlapping this time")
        raise ConflictError("Another appointment already overlaps this time")

    async def _find_or_create_client(
        self, company_id: uuid.UUID, name: str, phone: str,
    ) -> Client:
        result = await self.session.execute(
            select(Client).where(Client.company_id == company_id, Client.phone == phone)
        )
        client = result.scalar_one_or_none()
        if client is None:
            client = Client(company_id=company_id, name=name, phone=phone)
            self.session.add(client)
            await self.session.flush()
        elif client.name != name:
            client.name = name
            client.updated_at = utcnow()
            self.session.add(client)
        return client

    async def _notify_confirmed(self, appointment: Appointment, company: Company) -> None:
        """Best-effort: a failed confirmation never fails the booking."""
        try:
            (notice,) = await self._notices(company, [appointment])
            await self.notifier.appointment_confirmed(notice)
        except Exception:
            logger.warning(
                "Confirmation for appointment %s could not be sent", appointment.id, exc_info=True,
            )

    async def _notices(
        self, company: Company, appointments: Sequence[Appointment],
    ) -> list[AppointmentNotice]:
        clients = await load_by_ids(self.session, Client, (a.client_id for a in appointments))
        services = await load_by_ids(self.session, Service, (a.service_id for a in appointments))
        employees = await load_by_ids(self.session, Employee, (a.employee_id for a in appointments))

        notices = []
        for a in appointments:
            client = clients[a.client_id]
            employee = employees.get(a.employee_id) if a.employee_id else None
            notices.append(
                AppointmentNotice(
                    appointment_id=str(a.id),
                    client_name=client.name,
                    client_email=client.email,
                    company_name=company.name,
                    company_email=company.email,
                    company_phone=company.phone,
                    company_address=company.address,
                    starts_at=a.starts_at,
                    service_name=services[a.service_id].name,
                    employee_name=employee.name if employee else None,
                )
            )
        return notices

    async def _shape(self, appointments: Sequence[Appointment]) -> list[AppointmentRead]:
        clients = await load_by_ids(self.session, Client, (a.client_id for a in appointments))
        services = await load_by_ids(self.session, Service, (a.service_id for a in appointments))
        employees = await load_by_ids(self.session, Employee, (a.employee_id for a in appointments))
        return [
            AppointmentRead(
                id=a.id,
                company_id=a.company_id,
                client=client_summary(clients[a.client_id]),
                service=service_summary(services[a.service_id]),
                employee=employee_summary(employees.get(a.employee_id) if a.employee_id else None),
                starts_at=a.starts_at,
                ends_at=a.ends_at,
                status=a.status,
                created_at=a.created_at,
                updated_at=a.updated_at,
            )
            for a in appointments
        ]
