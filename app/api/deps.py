"""FastAPI dependencies for authentication, tenant resolution and services."""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import decode_jwt
from app.models.pagination import DEFAULT_LIMIT, MAX_LIMIT, PageParams
from app.services.appointments import AppointmentsService
from app.services.attendances import AttendancesService
from app.services.notifications import Notifier, get_notifier

bearer_scheme = HTTPBearer()


class AuthContext:
    """Resolved identity carried through a request."""

    __slots__ = ("company_id", "user_id", "user_role")

    def __init__(
        self,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        user_role: str,
    ) -> None:
        self.company_id = company_id
        self.user_id = user_id
        self.user_role = user_role


def _resolve_jwt(token: str) -> AuthContext:
    """Decode a JWT and extract company_id + user_id."""
    try:
        payload = decode_jwt(token)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from exc

    try:
        return AuthContext(
            company_id=uuid.UUID(payload["cid"]),
            user_id=uuid.UUID(payload["sub"]),
            user_role=payload.get("role", "member"),
        )
    except (KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed token payload",
        ) from exc


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> AuthContext:
    """Resolve ``Authorization: Bearer <jwt>`` to an AuthContext."""
    return _resolve_jwt(credentials.credentials)


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
Session = Annotated[AsyncSession, Depends(get_session)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]


def get_appointments_service(session: Session, notifier: NotifierDep) -> AppointmentsService:
    return AppointmentsService(session, notifier)


def get_attendances_service(session: Session) -> AttendancesService:
    return AttendancesService(session)


Appointments = Annotated[AppointmentsService, Depends(get_appointments_service)]
Attendances = Annotated[AttendancesService, Depends(get_attendances_service)]


def get_page_params(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
) -> PageParams:
    return PageParams(page=page, limit=limit)


Pagination = Annotated[PageParams, Depends(get_page_params)]
