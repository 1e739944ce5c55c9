"""Appointment endpoints. Static paths are declared before ``/{appointment_id}``."""

import uuid
from datetime import date, datetime, time
from typing import Annotated

from fastapi import APIRouter, Query, status

from app.api.deps import Appointments, Auth, Pagination
from app.core.exceptions import BadRequestError
from app.models.appointment import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentUpdate,
    AvailabilityRead,
    CalendarRead,
    ReminderRunResult,
)
from app.models.employee import EmployeeSummary
from app.models.pagination import Page
from app.models.service import ServiceRead

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreate, auth: Auth, appointments: Appointments,
) -> AppointmentRead:
    """Book a slot; the client is found by phone or created."""
    return await appointments.create(body, auth.company_id)


@router.get("", response_model=Page[AppointmentRead])
async def list_appointments(
    params: Pagination, auth: Auth, appointments: Appointments,
) -> Page[AppointmentRead]:
    return await appointments.list_appointments(auth.company_id, params)


@router.get("/check-availability", response_model=AvailabilityRead)
async def check_availability(
    date_start: datetime,
    date_end: datetime,
    auth: Auth,
    appointments: Appointments,
    employee_id: uuid.UUID | None = None,
) -> AvailabilityRead:
    if date_end <= date_start:
        raise BadRequestError("date_end must be after date_start")
    return await appointments.check_availability(
        auth.company_id, date_start, date_end, employee_id,
    )


@router.get("/calendar", response_model=CalendarRead)
async def get_calendar(
    auth: Auth,
    appointments: Appointments,
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> CalendarRead:
    """Days of the window (default: current month) with counts and overdue totals."""
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date, time.max) if end_date else None
    if start and end and end < start:
        raise BadRequestError("end_date must not be before start_date")
    return await appointments.calendar(auth.company_id, start, end)


@router.get("/date/{day}", response_model=list[AppointmentRead])
async def list_appointments_on_date(
    day: date, auth: Auth, appointments: Appointments,
) -> list[AppointmentRead]:
    return await appointments.by_date(auth.company_id, day)


@router.get("/overdue", response_model=list[AppointmentRead])
async def list_overdue_appointments(
    auth: Auth, appointments: Appointments,
) -> list[AppointmentRead]:
    return await appointments.overdue(auth.company_id)


@router.get("/services/by-favorites", response_model=list[ServiceRead])
async def list_services_by_favorites(
    auth: Auth, appointments: Appointments,
) -> list[ServiceRead]:
    services = await appointments.services_by_favorites(auth.company_id)
    return [ServiceRead.model_validate(s) for s in services]


@router.get("/employees/by-service/{service_id}", response_model=list[EmployeeSummary])
async def list_employees_by_service(
    service_id: uuid.UUID, auth: Auth, appointments: Appointments,
) -> list[EmployeeSummary]:
    employees = await appointments.employees_by_service(auth.company_id, service_id)
    return [EmployeeSummary.model_validate(e) for e in employees]


@router.post("/send-reminders", response_model=ReminderRunResult)
async def send_reminders(auth: Auth, appointments: Appointments) -> ReminderRunResult:
    """Run tomorrow's reminder batch for the caller's company now."""
    return await appointments.send_reminders(auth.company_id)


# ── Single appointment ───────────────────────────────────────

@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: uuid.UUID, auth: Auth, appointments: Appointments,
) -> AppointmentRead:
    return await appointments.get(appointment_id, auth.company_id)


@router.patch("/{appointment_id}", response_model=AppointmentRead)
async def update_appointment(
    appointment_id: uuid.UUID, body: AppointmentUpdate, auth: Auth, appointments: Appointments,
) -> AppointmentRead:
    return await appointments.update(appointment_id, body, auth.company_id)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: uuid.UUID, auth: Auth, appointments: Appointments,
) -> None:
    await appointments.delete(appointment_id, auth.company_id)
