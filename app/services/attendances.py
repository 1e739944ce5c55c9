"""Attendance lifecycle: open an attendance from an appointment, edit its
services while it is open, then complete it.

An attendance always carries at least one service. Once ``completed_at`` is
set neither the attendance nor its service/employee composition may change.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import BadRequestError, NotFoundError
from app.models.appointment import Appointment, AppointmentStatus
from app.models.attendance import (
    AppointmentRef,
    Attendance,
    AttendanceCreate,
    AttendanceEmployee,
    AttendanceRead,
    AttendanceService,
    AttendanceServiceAdd,
    AttendanceServiceRead,
    AttendanceUpdate,
    ServiceEmployeePair,
)
from app.models.base import utcnow
from app.models.client import Client
from app.models.employee import Employee
from app.models.pagination import Page, PageParams
from app.models.service import Service
from app.services.shaping import (
    client_summary,
    employee_summary,
    fetch_page,
    load_by_ids,
    service_summary,
)
from app.services.tenancy import get_owned_or_404

logger = logging.getLogger(__name__)

ATTENDANCE_NOT_FOUND = "Attendance not found"


def _unique(ids: Iterable[uuid.UUID]) -> list[uuid.UUID]:
    return list(dict.fromkeys(ids))


class AttendancesService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Lifecycle ─────────────────────────────────────────────

    async def create(self, data: AttendanceCreate, company_id: uuid.UUID) -> AttendanceRead:
        appointment = await get_owned_or_404(
            self.session, Appointment, data.appointment_id, company_id,
            "Appointment not found or does not belong to your company",
        )
        existing = await self.session.execute(
            select(Attendance.id).where(Attendance.appointment_id == appointment.id)
        )
        if existing.first() is not None:
            raise BadRequestError("An attendance already exists for this appointment")
        if appointment.status == AppointmentStatus.CANCELLED:
            raise BadRequestError("Cannot open an attendance for a cancelled appointment")

        service_ids = _unique(data.service_ids)
        await self._ensure_services_owned(service_ids, company_id)
        pairs = data.service_employees or []
        await self._ensure_pairs_valid(pairs, service_ids, company_id)

        attendance = Attendance(
            company_id=company_id,
            appointment_id=appointment.id,
            client_id=appointment.client_id,
            attended_at=appointment.starts_at,
        )
        self.session.add(attendance)
        await self.session.flush()

        self._add_services(attendance.id, service_ids)
        self._add_pairs(attendance.id, pairs)
        await self.session.commit()
        await self.session.refresh(attendance)
        logger.info("Attendance %s opened for appointment %s", attendance.id, appointment.id)
        return await self.shape(attendance)

    async def update(
        self, attendance_id: uuid.UUID, patch: AttendanceUpdate, company_id: uuid.UUID,
    ) -> AttendanceRead:
        """Replace the service set and/or the employee pairings wholesale."""
        attendance = await self._get_open(
            attendance_id, company_id, "Cannot update a completed attendance",
        )

        if patch.service_ids is not None:
            service_ids = _unique(patch.service_ids)
            await self._ensure_services_owned(service_ids, company_id)
        else:
            service_ids = await self._service_ids(attendance.id)

        if patch.service_employees is not None:
            await self._ensure_pairs_valid(patch.service_employees, service_ids, company_id)

        if patch.service_ids is not None:
            await self.session.execute(
                delete(AttendanceService).where(AttendanceService.attendance_id == attendance.id)
            )
            self._add_services(attendance.id, service_ids)
            if patch.service_employees is None:
                # Pairings for services that were dropped go with them
                await self.session.execute(
                    delete(AttendanceEmployee).where(
                        AttendanceEmployee.attendance_id == attendance.id,
                        AttendanceEmployee.service_id.not_in(service_ids),  # type: ignore[attr-defined]
                    )
                )

        if patch.service_employees is not None:
            await self.session.execute(
                delete(AttendanceEmployee).where(AttendanceEmployee.attendance_id == attendance.id)
            )
            self._add_pairs(attendance.id, patch.service_employees)

        attendance.updated_at = utcnow()
        self.session.add(attendance)
        await self.session.commit()
        await self.session.refresh(attendance)
        return await self.shape(attendance)

    async def complete(self, attendance_id: uuid.UUID, company_id: uuid.UUID) -> AttendanceRead:
        """Close the attendance and mark its appointment completed, atomically."""
        attendance = await self._get_open(
            attendance_id, company_id, "Attendance has already been completed",
        )
        now = utcnow()
        attendance.completed_at = now
        attendance.updated_at = now
        self.session.add(attendance)

        appointment = await self.session.get(Appointment, attendance.appointment_id)
        if appointment is not None:
            appointment.status = AppointmentStatus.COMPLETED
            appointment.updated_at = now
            self.session.add(appointment)

        await self.session.commit()
        await self.session.refresh(attendance)
        logger.info("Attendance %s completed", attendance.id)
        return await self.shape(attendance)

    # ── Service composition ───────────────────────────────────

    async def list_services(
        self, attendance_id: uuid.UUID, company_id: uuid.UUID,
    ) -> list[AttendanceServiceRead]:
        attendance = await self.get_model(attendance_id, company_id)
        return (await self.shape(attendance)).services

    async def add_service(
        self, attendance_id: uuid.UUID, body: AttendanceServiceAdd, company_id: uuid.UUID,
    ) -> AttendanceRead:
        attendance = await self._get_open(
            attendance_id, company_id, "Cannot add services to a completed attendance",
        )
        await get_owned_or_404(
            self.session, Service, body.service_id, company_id,
            "Service not found or does not belong to your company",
        )
        if body.employee_id is not None:
            await get_owned_or_404(
                self.session, Employee, body.employee_id, company_id,
                "Employee not found or does not belong to your company",
            )
        if body.service_id in await self._service_ids(attendance.id):
            raise BadRequestError("Service is already part of this attendance")

        self._add_services(attendance.id, [body.service_id])
        if body.employee_id is not None:
            self._add_pairs(
                attendance.id,
                [ServiceEmployeePair(service_id=body.service_id, employee_id=body.employee_id)],
            )
        attendance.updated_at = utcnow()
        self.session.add(attendance)
        await self.session.commit()
        await self.session.refresh(attendance)
        return await self.shape(attendance)

    async def remove_service(
        self, attendance_id: uuid.UUID, service_id: uuid.UUID, company_id: uuid.UUID,
    ) -> AttendanceRead:
        attendance = await self._get_open(
            attendance_id, company_id, "Cannot remove services from a completed attendance",
        )
        current = await self._service_ids(attendance.id)
        if service_id not in current:
            raise NotFoundError("Service is not part of this attendance")
        if len(current) <= 1:
            raise BadRequestError("Cannot remove the last service of an attendance")

        await self.session.execute(
            delete(AttendanceService).where(
                AttendanceService.attendance_id == attendance.id,
                AttendanceService.service_id == service_id,
            )
        )
        await self.session.execute(
            delete(AttendanceEmployee).where(
                AttendanceEmployee.attendance_id == attendance.id,
                AttendanceEmployee.service_id == service_id,
            )
        )
        attendance.updated_at = utcnow()
        self.session.add(attendance)
        await self.session.commit()
        await self.session.refresh(attendance)
        return await self.shape(attendance)

    # ── Reads ─────────────────────────────────────────────────

    async def list_attendances(
        self, company_id: uuid.UUID, params: PageParams,
    ) -> Page[AttendanceRead]:
        stmt = (
            select(Attendance)
            .where(Attendance.company_id == company_id)
            .order_by(Attendance.attended_at.desc())  # type: ignore[attr-defined]
        )
        rows, total = await fetch_page(self.session, stmt, params)
        return Page[AttendanceRead].build(await self.shape_many(rows), params, total)

    async def get(self, attendance_id: uuid.UUID, company_id: uuid.UUID) -> AttendanceRead:
        return await self.shape(await self.get_model(attendance_id, company_id))

    async def get_model(self, attendance_id: uuid.UUID, company_id: uuid.UUID) -> Attendance:
        return await get_owned_or_404(
            self.session, Attendance, attendance_id, company_id, ATTENDANCE_NOT_FOUND,
        )

    async def shape(self, attendance: Attendance) -> AttendanceRead:
        return (await self.shape_many([attendance]))[0]

    async def shape_many(self, attendances: Sequence[Attendance]) -> list[AttendanceRead]:
        """Project attendances with a per-service breakdown.

        Each service is paired with the employee recorded for the same
        ``service_id``; a service without a pairing has ``employee=None``.
        """
        if not attendances:
            return []
        ids = [a.id for a in attendances]

        svc_rows = (
            await self.session.execute(
                select(AttendanceService)
                .where(AttendanceService.attendance_id.in_(ids))  # type: ignore[attr-defined]
                .order_by(AttendanceService.created_at.asc())  # type: ignore[attr-defined]
            )
        ).scalars().all()
        emp_rows = (
            await self.session.execute(
                select(AttendanceEmployee).where(
                    AttendanceEmployee.attendance_id.in_(ids)  # type: ignore[attr-defined]
                )
            )
        ).scalars().all()

        services = await load_by_ids(self.session, Service, (r.service_id for r in svc_rows))
        employees = await load_by_ids(self.session, Employee, (r.employee_id for r in emp_rows))
        clients = await load_by_ids(self.session, Client, (a.client_id for a in attendances))
        appointments = await load_by_ids(
            self.session, Appointment, (a.appointment_id for a in attendances),
        )

        pairing = {(r.attendance_id, r.service_id): r.employee_id for r in emp_rows}
        by_attendance: dict[uuid.UUID, list[AttendanceServiceRead]] = {i: [] for i in ids}
        for row in svc_rows:
            employee_id = pairing.get((row.attendance_id, row.service_id))
            by_attendance[row.attendance_id].append(
                AttendanceServiceRead(
                    id=row.id,
                    service=service_summary(services[row.service_id]),
                    employee=employee_summary(employees.get(employee_id) if employee_id else None),
                )
            )

        shaped = []
        for a in attendances:
            appt = appointments[a.appointment_id]
            shaped.append(
                AttendanceRead(
                    id=a.id,
                    company_id=a.company_id,
                    client=client_summary(clients[a.client_id]),
                    appointment=AppointmentRef(
                        id=appt.id,
                        starts_at=appt.starts_at,
                        ends_at=appt.ends_at,
                        status=appt.status,
                    ),
                    attended_at=a.attended_at,
                    completed_at=a.completed_at,
                    services=by_attendance[a.id],
                    created_at=a.created_at,
                    updated_at=a.updated_at,
                )
            )
        return shaped

    # ── Internal ──────────────────────────────────────────────

    async def _get_open(
        self, attendance_id: uuid.UUID, company_id: uuid.UUID, detail: str,
    ) -> Attendance:
        attendance = await self.get_model(attendance_id, company_id)
        if attendance.completed_at is not None:
            raise BadRequestError(detail)
        return attendance

    async def _service_ids(self, attendance_id: uuid.UUID) -> list[uuid.UUID]:
        result = await self.session.execute(
            select(AttendanceService.service_id).where(
                AttendanceService.attendance_id == attendance_id,
            )
        )
        return list(result.scalars().all())

    async def _ensure_services_owned(
        self, service_ids: list[uuid.UUID], company_id: uuid.UUID,
    ) -> None:
        result = await self.session.execute(
            select(Service.id).where(
                Service.id.in_(service_ids),  # type: ignore[attr-defined]
                Service.company_id == company_id,
            )
        )
        if len(set(result.scalars().all())) != len(set(service_ids)):
            raise BadRequestError("One or more services do not belong to your company")

    async def _ensure_pairs_valid(
        self,
        pairs: Sequence[ServiceEmployeePair],
        service_ids: list[uuid.UUID],
        company_id: uuid.UUID,
    ) -> None:
        if not pairs:
            return
        paired_services = [p.service_id for p in pairs]
        if len(set(paired_services)) != len(paired_services):
            raise BadRequestError("A service can be attributed to only one employee")
        if not set(paired_services) <= set(service_ids):
            raise BadRequestError("Employee pairing references a service not in this attendance")

        employee_ids = {p.employee_id for p in pairs}
        result = await self.session.execute(
            select(Employee.id).where(
                Employee.id.in_(employee_ids),  # type: ignore[attr-defined]
                Employee.company_id == company_id,
            )
        )
        if len(set(result.scalars().all())) != len(employee_ids):
            raise BadRequestError("One or more employees do not belong to your company")

    def _add_services(self, attendance_id: uuid.UUID, service_ids: Iterable[uuid.UUID]) -> None:
        for service_id in service_ids:
            self.session.add(AttendanceService(attendance_id=attendance_id, service_id=service_id))

    def _add_pairs(
        self, attendance_id: uuid.UUID, pairs: Iterable[ServiceEmployeePair],
    ) -> None:
        for pair in pairs:
            self.session.add(
                AttendanceEmployee(
                    attendance_id=attendance_id,
                    service_id=pair.service_id,
                    employee_id=pair.employee_id,
                )
            )
