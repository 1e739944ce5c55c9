"""Public activity-branch catalog. Read-only; rows come from ``app.seed``."""

import uuid

from fastapi import APIRouter
from sqlmodel import select

from app.api.deps import Pagination, Session
from app.core import cache
from app.core.exceptions import NotFoundError
from app.models.activity_branch import (
    ActivityBranch,
    ActivityBranchDetail,
    ActivityBranchRead,
    DefaultActivityService,
    DefaultActivityServiceRead,
)
from app.models.pagination import Page

router = APIRouter(prefix="/activity-branches", tags=["activity-branches"])

CACHE_PREFIX = "activity-branches"


async def _defaults(session, branch_id: uuid.UUID) -> list[DefaultActivityServiceRead]:
    result = await session.execute(
        select(DefaultActivityService)
        .where(DefaultActivityService.activity_branch_id == branch_id)
        .order_by(
            DefaultActivityService.is_favorite_default.desc(),  # type: ignore[attr-defined]
            DefaultActivityService.name.asc(),  # type: ignore[attr-defined]
        )
    )
    return [DefaultActivityServiceRead.model_validate(d) for d in result.scalars().all()]


async def _get_or_404(branch_id: uuid.UUID, session) -> ActivityBranch:
    branch = await session.get(ActivityBranch, branch_id)
    if branch is None:
        raise NotFoundError("Activity branch not found")
    return branch


@router.get("", response_model=Page[ActivityBranchRead])
async def list_activity_branches(
    params: Pagination,
    session: Session,
) -> Page[ActivityBranchRead]:
    key = (CACHE_PREFIX, "all")
    branches = cache.get(key)
    if branches is None:
        result = await session.execute(
            select(ActivityBranch).order_by(ActivityBranch.name.asc())  # type: ignore[attr-defined]
        )
        branches = [ActivityBranchRead.model_validate(b) for b in result.scalars().all()]
        cache.put(key, branches)

    # One entry for the whole list; pages are sliced from it
    window = branches[params.offset:params.offset + params.limit]
    return Page[ActivityBranchRead].build(window, params, len(branches))


@router.get("/{branch_id}", response_model=ActivityBranchDetail)
async def get_activity_branch(branch_id: uuid.UUID, session: Session) -> ActivityBranchDetail:
    branch = await _get_or_404(branch_id, session)
    return ActivityBranchDetail(
        id=branch.id,
        name=branch.name,
        description=branch.description,
        created_at=branch.created_at,
        services=await _defaults(session, branch.id),
    )


@router.get("/{branch_id}/default-services", response_model=list[DefaultActivityServiceRead])
async def list_default_services(
    branch_id: uuid.UUID, session: Session,
) -> list[DefaultActivityServiceRead]:
    """Favorites first, then alphabetical."""
    await _get_or_404(branch_id, session)
    return await _defaults(session, branch_id)
