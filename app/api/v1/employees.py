"""Employee CRUD and service preferences — all queries scoped to company_id."""

import uuid
from collections.abc import Sequence

from fastapi import APIRouter, status
from sqlalchemy import delete
from sqlmodel import select

from app.api.deps import Auth, Pagination, Session
from app.core.exceptions import BadRequestError
from app.models.base import utcnow
from app.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeRead,
    EmployeeServicePreference,
    EmployeeUpdate,
    PreferredService,
    ServicePreferencesUpdate,
)
from app.models.pagination import Page
from app.models.service import Service
from app.services.shaping import fetch_page
from app.services.tenancy import delete_or_400, get_owned_or_404

router = APIRouter(prefix="/employees", tags=["employees"])


async def _get_or_404(employee_id: uuid.UUID, company_id: uuid.UUID, session) -> Employee:
    return await get_owned_or_404(session, Employee, employee_id, company_id, "Employee not found")


async def _to_reads(employees: Sequence[Employee], session) -> list[EmployeeRead]:
    """Attach each employee's preferred services, alphabetically."""
    prefs: dict[uuid.UUID, list[PreferredService]] = {e.id: [] for e in employees}
    if employees:
        result = await session.execute(
            select(EmployeeServicePreference.employee_id, Service)
            .join(Service, Service.id == EmployeeServicePreference.service_id)
            .where(EmployeeServicePreference.employee_id.in_(prefs))  # type: ignore[attr-defined]
            .order_by(Service.name.asc())  # type: ignore[attr-defined]
        )
        for employee_id, service in result.all():
            prefs[employee_id].append(
                PreferredService(id=service.id, name=service.name, description=service.description)
            )
    return [
        EmployeeRead(
            id=e.id,
            company_id=e.company_id,
            name=e.name,
            photo_url=e.photo_url,
            preferred_services=prefs[e.id],
            created_at=e.created_at,
            updated_at=e.updated_at,
        )
        for e in employees
    ]


async def _to_read(employee: Employee, session) -> EmployeeRead:
    return (await _to_reads([employee], session))[0]


@router.post("", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(body: EmployeeCreate, auth: Auth, session: Session) -> EmployeeRead:
    employee = Employee(company_id=auth.company_id, **body.model_dump())
    session.add(employee)
    await session.commit()
    await session.refresh(employee)
    return await _to_read(employee, session)


@router.get("", response_model=Page[EmployeeRead])
async def list_employees(params: Pagination, auth: Auth, session: Session) -> Page[EmployeeRead]:
    stmt = (
        select(Employee)
        .where(Employee.company_id == auth.company_id)
        .order_by(Employee.name.asc())  # type: ignore[attr-defined]
    )
    rows, total = await fetch_page(session, stmt, params)
    return Page[EmployeeRead].build(await _to_reads(rows, session), params, total)


@router.get("/{employee_id}", response_model=EmployeeRead)
async def get_employee(employee_id: uuid.UUID, auth: Auth, session: Session) -> EmployeeRead:
    employee = await _get_or_404(employee_id, auth.company_id, session)
    return await _to_read(employee, session)


@router.patch("/{employee_id}", response_model=EmployeeRead)
async def update_employee(
    employee_id: uuid.UUID, body: EmployeeUpdate, auth: Auth, session: Session,
) -> EmployeeRead:
    employee = await _get_or_404(employee_id, auth.company_id, session)
    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("name") is None:
        update_data.pop("name", None)
    for field, value in update_data.items():
        setattr(employee, field, value)
    employee.updated_at = utcnow()
    session.add(employee)
    await session.commit()
    await session.refresh(employee)
    return await _to_read(employee, session)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(employee_id: uuid.UUID, auth: Auth, session: Session) -> None:
    employee = await _get_or_404(employee_id, auth.company_id, session)
    await session.execute(
        delete(EmployeeServicePreference).where(EmployeeServicePreference.employee_id == employee.id)
    )
    await delete_or_400(session, employee, "Employee is assigned to appointments or attendances")


# ── Service preferences ──────────────────────────────────────

@router.get("/{employee_id}/service-preferences", response_model=list[PreferredService])
async def get_service_preferences(
    employee_id: uuid.UUID, auth: Auth, session: Session,
) -> list[PreferredService]:
    employee = await _get_or_404(employee_id, auth.company_id, session)
    return (await _to_read(employee, session)).preferred_services


@router.put("/{employee_id}/service-preferences", response_model=EmployeeRead)
async def replace_service_preferences(
    employee_id: uuid.UUID, body: ServicePreferencesUpdate, auth: Auth, session: Session,
) -> EmployeeRead:
    """Replace the whole preference set. Preferences only affect ordering."""
    employee = await _get_or_404(employee_id, auth.company_id, session)
    wanted = set(body.service_ids)
    if wanted:
        result = await session.execute(
            select(Service.id).where(
                Service.id.in_(wanted),  # type: ignore[attr-defined]
                Service.company_id == auth.company_id,
            )
        )
        if set(result.scalars().all()) != wanted:
            raise BadRequestError("One or more services do not belong to your company")

    await session.execute(
        delete(EmployeeServicePreference).where(EmployeeServicePreference.employee_id == employee.id)
    )
    for service_id in wanted:
        session.add(EmployeeServicePreference(employee_id=employee.id, service_id=service_id))
    employee.updated_at = utcnow()
    session.add(employee)
    await session.commit()
    await session.refresh(employee)
    return await _to_read(employee, session)
