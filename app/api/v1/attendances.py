"""Attendance endpoints: lifecycle, service composition and share text."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import Attendances, Auth, Pagination, Session
from app.models.attendance import (
    AttendanceCreate,
    AttendanceRead,
    AttendanceServiceAdd,
    AttendanceServiceRead,
    AttendanceUpdate,
)
from app.models.company import ShareTextRead
from app.models.pagination import Page
from app.services.sharing import SharingService

router = APIRouter(prefix="/attendances", tags=["attendances"])


@router.post("", response_model=AttendanceRead, status_code=status.HTTP_201_CREATED)
async def create_attendance(
    body: AttendanceCreate, auth: Auth, attendances: Attendances,
) -> AttendanceRead:
    return await attendances.create(body, auth.company_id)


@router.get("", response_model=Page[AttendanceRead])
async def list_attendances(
    params: Pagination, auth: Auth, attendances: Attendances,
) -> Page[AttendanceRead]:
    return await attendances.list_attendances(auth.company_id, params)


@router.get("/{attendance_id}", response_model=AttendanceRead)
async def get_attendance(
    attendance_id: uuid.UUID, auth: Auth, attendances: Attendances,
) -> AttendanceRead:
    return await attendances.get(attendance_id, auth.company_id)


@router.patch("/{attendance_id}", response_model=AttendanceRead)
async def update_attendance(
    attendance_id: uuid.UUID, body: AttendanceUpdate, auth: Auth, attendances: Attendances,
) -> AttendanceRead:
    """Replace the service set and/or employee pairings of an open attendance."""
    return await attendances.update(attendance_id, body, auth.company_id)


@router.post("/{attendance_id}/complete", response_model=AttendanceRead)
async def complete_attendance(
    attendance_id: uuid.UUID, auth: Auth, attendances: Attendances,
) -> AttendanceRead:
    return await attendances.complete(attendance_id, auth.company_id)


@router.get("/{attendance_id}/services", response_model=list[AttendanceServiceRead])
async def list_attendance_services(
    attendance_id: uuid.UUID, auth: Auth, attendances: Attendances,
) -> list[AttendanceServiceRead]:
    return await attendances.list_services(attendance_id, auth.company_id)


@router.post(
    "/{attendance_id}/services",
    response_model=AttendanceRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_attendance_service(
    attendance_id: uuid.UUID, body: AttendanceServiceAdd, auth: Auth, attendances: Attendances,
) -> AttendanceRead:
    return await attendances.add_service(attendance_id, body, auth.company_id)


@router.delete("/{attendance_id}/services/{service_id}", response_model=AttendanceRead)
async def remove_attendance_service(
    attendance_id: uuid.UUID, service_id: uuid.UUID, auth: Auth, attendances: Attendances,
) -> AttendanceRead:
    return await attendances.remove_service(attendance_id, service_id, auth.company_id)


@router.post("/{attendance_id}/share", response_model=ShareTextRead)
async def share_attendance(
    attendance_id: uuid.UUID, auth: Auth, session: Session,
) -> ShareTextRead:
    """Render the company's share template for a completed attendance."""
    return await SharingService(session).share_attendance(attendance_id, auth.company_id)
