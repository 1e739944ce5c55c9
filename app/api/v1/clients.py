"""Client CRUD and attendance report, scoped to company_id."""

import uuid
from datetime import date, datetime, time, timedelta
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy import func
from sqlmodel import select

from app.api.deps import Auth, Pagination, Session
from app.core.exceptions import BadRequestError
from app.models.attendance import Attendance
from app.models.base import utcnow
from app.models.client import Client, ClientCreate, ClientRead, ClientReportRow, ClientUpdate
from app.models.pagination import Page
from app.services.shaping import fetch_page
from app.services.tenancy import delete_or_400, get_owned_or_404

router = APIRouter(prefix="/clients", tags=["clients"])


async def _get_or_404(client_id: uuid.UUID, company_id: uuid.UUID, session) -> Client:
    return await get_owned_or_404(session, Client, client_id, company_id, "Client not found")


async def _ensure_phone_free(
    phone: str, company_id: uuid.UUID, session, exclude_id: uuid.UUID | None = None,
) -> None:
    stmt = select(Client.id).where(Client.company_id == company_id, Client.phone == phone)
    if exclude_id is not None:
        stmt = stmt.where(Client.id != exclude_id)
    if (await session.execute(stmt)).first() is not None:
        raise BadRequestError("A client with this phone already exists")


def _report_window(
    start_date: date | None, end_date: date | None, month: int | None, year: int | None,
) -> tuple[datetime | None, datetime | None]:
    """Resolve the report filters to [start, end) bounds; month/year win over dates."""
    if month is not None:
        year = year or utcnow().year
        start = datetime(year, month, 1)
        end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        return start, end
    if year is not None:
        return datetime(year, 1, 1), datetime(year + 1, 1, 1)
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date, time.min) + timedelta(days=1) if end_date else None
    return start, end


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def create_client(body: ClientCreate, auth: Auth, session: Session) -> ClientRead:
    await _ensure_phone_free(body.phone, auth.company_id, session)
    client = Client(company_id=auth.company_id, **body.model_dump())
    session.add(client)
    await session.commit()
    await session.refresh(client)
    return ClientRead.model_validate(client)


@router.get("", response_model=Page[ClientRead])
async def list_clients(params: Pagination, auth: Auth, session: Session) -> Page[ClientRead]:
    stmt = (
        select(Client)
        .where(Client.company_id == auth.company_id)
        .order_by(Client.name.asc())  # type: ignore[attr-defined]
    )
    rows, total = await fetch_page(session, stmt, params)
    return Page[ClientRead].build([ClientRead.model_validate(c) for c in rows], params, total)


@router.get("/report", response_model=Page[ClientReportRow])
async def client_report(
    params: Pagination,
    auth: Auth,
    session: Session,
    name: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: Annotated[int | None, Query(ge=1900, le=9999)] = None,
) -> Page[ClientReportRow]:
    """Clients with their attendance count and most recent attendance.

    With a date window only clients attended inside it are listed, and the
    counts cover the window only.
    """
    start, end = _report_window(start_date, end_date, month, year)

    att = select(
        Attendance.client_id,
        func.count(Attendance.id).label("total"),
        func.max(Attendance.attended_at).label("last_at"),
    ).where(Attendance.company_id == auth.company_id)
    if start is not None:
        att = att.where(Attendance.attended_at >= start)
    if end is not None:
        att = att.where(Attendance.attended_at < end)
    att = att.group_by(Attendance.client_id).subquery()

    stmt = (
        select(Client, att.c.total, att.c.last_at)
        .outerjoin(att, att.c.client_id == Client.id)
        .where(Client.company_id == auth.company_id)
    )
    if name:
        stmt = stmt.where(func.lower(Client.name).contains(name.lower()))
    if start is not None or end is not None:
        stmt = stmt.where(att.c.total.is_not(None))

    total = (
        await session.execute(select(func.count()).select_from(stmt.subquery()))
    ).scalar_one()
    result = await session.execute(
        stmt.order_by(Client.name.asc())  # type: ignore[attr-defined]
        .offset(params.offset)
        .limit(params.limit)
    )
    rows = [
        ClientReportRow(
            **ClientRead.model_validate(client).model_dump(),
            total_attendances=count or 0,
            last_attendance_at=last_at,
        )
        for client, count, last_at in result.all()
    ]
    return Page[ClientReportRow].build(rows, params, total)


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(client_id: uuid.UUID, auth: Auth, session: Session) -> ClientRead:
    return ClientRead.model_validate(await _get_or_404(client_id, auth.company_id, session))


@router.patch("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: uuid.UUID, body: ClientUpdate, auth: Auth, session: Session,
) -> ClientRead:
    client = await _get_or_404(client_id, auth.company_id, session)
    update_data = body.model_dump(exclude_unset=True)
    for key in ("name", "phone"):
        if key in update_data and update_data[key] is None:
            del update_data[key]
    if "phone" in update_data and update_data["phone"] != client.phone:
        await _ensure_phone_free(update_data["phone"], auth.company_id, session, exclude_id=client.id)

    for field, value in update_data.items():
        setattr(client, field, value)
    client.updated_at = utcnow()
    session.add(client)
    await session.commit()
    await session.refresh(client)
    return ClientRead.model_validate(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: uuid.UUID, auth: Auth, session: Session) -> None:
    client = await _get_or_404(client_id, auth.company_id, session)
    await delete_or_400(session, client, "Client has appointments or attendances")
