"""Authentication endpoints: registration, login, password recovery, current user."""

import json

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlmodel import select
from starlette.datastructures import UploadFile

from app.api.deps import Auth, NotifierDep, Session
from app.core.config import get_settings
from app.core.exceptions import BadRequestError, UnauthorizedError
from app.core.security import create_jwt, verify_password
from app.models.company import Company, CompanyRead
from app.models.user import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    User,
    UserRead,
)
from app.services.accounts import AccountsService, LogoUpload, get_company_or_404

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────────

class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
    company: CompanyRead


class MeResponse(BaseModel):
    user: UserRead
    company: CompanyRead


class MessageResponse(BaseModel):
    message: str


def _issue(user: User, company: Company) -> AuthResponse:
    token = create_jwt(
        subject=str(user.id),
        company_id=str(user.company_id),
        role=user.role,
    )
    return AuthResponse(
        access_token=token,
        user=UserRead.model_validate(user),
        company=CompanyRead.model_validate(company),
    )


async def _read_registration(request: Request) -> tuple[RegisterRequest, LogoUpload | None]:
    """Accept the signup either as JSON or as multipart form with a ``logo`` file."""
    logo_file = None
    try:
        if request.headers.get("content-type", "").startswith("multipart/form-data"):
            form = await request.form()
            fields = {k: v for k, v in form.items() if not isinstance(v, UploadFile)}
            upload = form.get("logo")
            if isinstance(upload, UploadFile) and upload.filename:
                logo_file = LogoUpload(await upload.read(), upload.content_type or "")
            return RegisterRequest.model_validate(fields), logo_file
        try:
            payload = await request.json()
        except json.JSONDecodeError as exc:
            raise BadRequestError("Request body must be JSON or multipart form data") from exc
        return RegisterRequest.model_validate(payload), None
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


# ── Routes ───────────────────────────────────────────────────

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: Request, session: Session, notifier: NotifierDep) -> AuthResponse:
    """Create a company, its owner and its default services, then sign in."""
    body, logo_file = await _read_registration(request)
    user, company = await AccountsService(session, notifier).register(body, logo_file)
    return _issue(user, company)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, session: Session) -> AuthResponse:
    """Authenticate with email + password, receive a JWT."""
    result = await session.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    company = await session.get(Company, user.company_id)
    if company is None or not company.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Company is disabled",
        )
    return _issue(user, company)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    body: ForgotPasswordRequest, session: Session, notifier: NotifierDep,
) -> ForgotPasswordResponse:
    raw = await AccountsService(session, notifier).request_password_reset(body.email)
    return ForgotPasswordResponse(
        message="Password reset instructions sent to your email",
        reset_token=raw if get_settings().expose_reset_token else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest, session: Session, notifier: NotifierDep,
) -> MessageResponse:
    await AccountsService(session, notifier).reset_password(body.token, body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(auth: Auth, session: Session) -> MeResponse:
    """Return the current authenticated user and their company."""
    user = await session.get(User, auth.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    company = await get_company_or_404(session, auth.company_id)
    return MeResponse(
        user=UserRead.model_validate(user),
        company=CompanyRead.model_validate(company),
    )
