"""Bulk loading and compact response shapes for joined entities."""

import uuid
from collections.abc import Iterable
from typing import TypeVar

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.models.client import Client, ClientSummary
from app.models.employee import Employee, EmployeeSummary
from app.models.pagination import PageParams
from app.models.service import Service, ServiceSummary

ModelT = TypeVar("ModelT", bound=SQLModel)


async def load_by_ids(
    session: AsyncSession, model: type[ModelT], ids: Iterable[uuid.UUID | None],
) -> dict[uuid.UUID, ModelT]:
    """One ``IN`` query for every distinct non-null id."""
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    result = await session.execute(
        select(model).where(model.id.in_(wanted))  # type: ignore[attr-defined]
    )
    return {obj.id: obj for obj in result.scalars().all()}  # type: ignore[attr-defined]


async def fetch_page(session: AsyncSession, stmt, params: PageParams) -> tuple[list, int]:
    """Run ``stmt`` for one page and count the full result set."""
    total = (
        await session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    ).scalar_one()
    result = await session.execute(stmt.offset(params.offset).limit(params.limit))
    return list(result.scalars().all()), total


def client_summary(client: Client) -> ClientSummary:
    return ClientSummary(id=client.id, name=client.name, phone=client.phone)


def service_summary(service: Service) -> ServiceSummary:
    return ServiceSummary(
        id=service.id,
        name=service.name,
        description=service.description,
        is_favorite=service.is_favorite,
    )


def employee_summary(employee: Employee | None) -> EmployeeSummary | None:
    if employee is None:
        return None
    return EmployeeSummary(id=employee.id, name=employee.name, photo_url=employee.photo_url)
