"""Company service catalog: CRUD, favorites and imports. All queries scoped to company_id."""

import uuid

from fastapi import APIRouter, UploadFile, status
from sqlmodel import select

from app.api.deps import Auth, Pagination, Session
from app.core.exceptions import BadRequestError
from app.models.activity_branch import AvailableDefaultService
from app.models.base import utcnow
from app.models.pagination import Page
from app.models.service import (
    CsvImportResult,
    ImportResult,
    ImportServicesRequest,
    SelectiveImportRequest,
    Service,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)
from app.services.catalog import CatalogService
from app.services.shaping import fetch_page
from app.services.tenancy import delete_or_400, get_owned_or_404

router = APIRouter(prefix="/services", tags=["services"])

MAX_CSV_SIZE = 1024 * 1024


async def _get_or_404(service_id: uuid.UUID, company_id: uuid.UUID, session) -> Service:
    return await get_owned_or_404(session, Service, service_id, company_id, "Service not found")


def _ordered(company_id: uuid.UUID):
    return (
        select(Service)
        .where(Service.company_id == company_id)
        .order_by(Service.is_favorite.desc(), Service.name.asc())  # type: ignore[attr-defined]
    )


async def _touch(service: Service, session) -> ServiceRead:
    service.updated_at = utcnow()
    session.add(service)
    await session.commit()
    await session.refresh(service)
    return ServiceRead.model_validate(service)


@router.get("", response_model=Page[ServiceRead])
async def list_services(
    params: Pagination,
    auth: Auth,
    session: Session,
    favorites: bool = False,
) -> Page[ServiceRead]:
    stmt = _ordered(auth.company_id)
    if favorites:
        stmt = stmt.where(Service.is_favorite.is_(True))  # type: ignore[attr-defined]
    rows, total = await fetch_page(session, stmt, params)
    return Page[ServiceRead].build([ServiceRead.model_validate(s) for s in rows], params, total)


@router.get("/favorites", response_model=list[ServiceRead])
async def list_favorite_services(auth: Auth, session: Session) -> list[ServiceRead]:
    stmt = _ordered(auth.company_id).where(Service.is_favorite.is_(True))  # type: ignore[attr-defined]
    result = await session.execute(stmt)
    return [ServiceRead.model_validate(s) for s in result.scalars().all()]


@router.post("", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
async def create_service(body: ServiceCreate, auth: Auth, session: Session) -> ServiceRead:
    service = Service(company_id=auth.company_id, **body.model_dump())
    session.add(service)
    await session.commit()
    await session.refresh(service)
    return ServiceRead.model_validate(service)


# ── Imports ──────────────────────────────────────────────────

@router.post("/import", response_model=ImportResult)
async def import_branch_services(
    body: ImportServicesRequest, auth: Auth, session: Session,
) -> ImportResult:
    """Copy every default of a branch that the company has not imported yet."""
    return await CatalogService(session).import_branch(auth.company_id, body.activity_branch_id)


@router.get("/available/{activity_branch_id}", response_model=list[AvailableDefaultService])
async def list_available_services(
    activity_branch_id: uuid.UUID, auth: Auth, session: Session,
) -> list[AvailableDefaultService]:
    return await CatalogService(session).available(auth.company_id, activity_branch_id)


@router.post("/import/selective", response_model=ImportResult)
async def import_selected_services(
    body: SelectiveImportRequest, auth: Auth, session: Session,
) -> ImportResult:
    return await CatalogService(session).import_selected(auth.company_id, body)


@router.post("/import/csv", response_model=CsvImportResult)
async def import_services_csv(file: UploadFile, auth: Auth, session: Session) -> CsvImportResult:
    """Import ``name,description`` rows from an uploaded CSV file."""
    if not (file.filename or "").lower().endswith(".csv"):
        raise BadRequestError("Only .csv files are accepted")
    content = await file.read()
    if len(content) > MAX_CSV_SIZE:
        raise BadRequestError(f"File too large. Maximum size is {MAX_CSV_SIZE // 1024} KB.")
    return await CatalogService(session).import_csv(auth.company_id, content)


# ── Single service ───────────────────────────────────────────

@router.get("/{service_id}", response_model=ServiceRead)
async def get_service(service_id: uuid.UUID, auth: Auth, session: Session) -> ServiceRead:
    return ServiceRead.model_validate(await _get_or_404(service_id, auth.company_id, session))


@router.patch("/{service_id}", response_model=ServiceRead)
async def update_service(
    service_id: uuid.UUID, body: ServiceUpdate, auth: Auth, session: Session,
) -> ServiceRead:
    service = await _get_or_404(service_id, auth.company_id, session)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(service, field, value)
    return await _touch(service, session)


@router.post("/{service_id}/toggle-favorite", response_model=ServiceRead)
async def toggle_favorite(service_id: uuid.UUID, auth: Auth, session: Session) -> ServiceRead:
    service = await _get_or_404(service_id, auth.company_id, session)
    service.is_favorite = not service.is_favorite
    return await _touch(service, session)


@router.post("/{service_id}/toggle-active", response_model=ServiceRead)
async def toggle_active(service_id: uuid.UUID, auth: Auth, session: Session) -> ServiceRead:
    service = await _get_or_404(service_id, auth.company_id, session)
    service.is_active = not service.is_active
    return await _touch(service, session)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(service_id: uuid.UUID, auth: Auth, session: Session) -> None:
    service = await _get_or_404(service_id, auth.company_id, session)
    await delete_or_400(session, service, "Service is used by appointments or attendances")
