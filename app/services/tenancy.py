"""Tenant-scoped lookups shared by routers and service objects."""

import uuid
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.core.exceptions import BadRequestError, NotFoundError

ModelT = TypeVar("ModelT", bound=SQLModel)


async def get_owned_or_404(
    session: AsyncSession,
    model: type[ModelT],
    entity_id: uuid.UUID,
    company_id: uuid.UUID,
    detail: str,
) -> ModelT:
    """Fetch ``model`` by id only if it belongs to ``company_id``.

    A row owned by another company is reported exactly like a missing one.
    """
    stmt = select(model).where(
        model.id == entity_id,  # type: ignore[attr-defined]
        model.company_id == company_id,  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFoundError(detail)
    return obj


async def delete_or_400(session: AsyncSession, obj: SQLModel, detail: str) -> None:
    """Delete ``obj`` and commit; a foreign-key violation becomes a BadRequest."""
    await session.delete(obj)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise BadRequestError(detail) from exc
