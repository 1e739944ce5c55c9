"""Company registration and password recovery."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import Settings, get_settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.security import generate_reset_token, hash_password, hash_token
from app.models.activity_branch import ActivityBranch
from app.models.base import utcnow
from app.models.company import Company
from app.models.password_recovery_token import PasswordRecoveryToken
from app.models.user import RegisterRequest, User, UserRole
from app.services.catalog import copy_branch_defaults
from app.services.notifications import Notifier
from app.services.storage import LogoStore

logger = logging.getLogger(__name__)


@dataclass
class LogoUpload:
    content: bytes
    content_type: str


class AccountsService:
    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier,
        store: LogoStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.notifier = notifier
        self.settings = settings or get_settings()
        self.store = store or LogoStore(self.settings)

    async def register(
        self, body: RegisterRequest, logo_file: LogoUpload | None = None,
    ) -> tuple[User, Company]:
        """Create company, owner and the branch's default services in one transaction."""
        existing = await self.session.execute(select(User.id).where(User.email == body.email))
        if existing.first() is not None:
            raise BadRequestError("Email already registered")

        branch = await self.session.get(ActivityBranch, body.activity_branch_id)
        if branch is None:
            raise NotFoundError("Activity branch not found")

        company = Company(
            activity_branch_id=branch.id,
            name=body.company_name,
            email=body.email,
            phone=body.phone,
            address=body.address,
        )
        self.session.add(company)
        await self.session.flush()

        user = User(
            company_id=company.id,
            email=body.email,
            password_hash=hash_password(body.password),
            name=body.name,
            phone=body.user_phone,
            role=UserRole.OWNER,
        )
        self.session.add(user)
        copied = await copy_branch_defaults(self.session, company.id, branch.id)
        await self.session.commit()
        logger.info(
            "Registered company %s with %d default services from branch %s",
            company.id, copied, branch.name,
        )

        await self._store_logo(company, body.logo, logo_file)
        await self._send_welcome(user, company)
        await self.session.refresh(user)
        await self.session.refresh(company)
        return user, company

    async def request_password_reset(self, email: str) -> str:
        """Issue a single-use reset token and email it. Returns the raw token."""
        result = await self.session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")

        raw = generate_reset_token()
        self.session.add(
            PasswordRecoveryToken(
                user_id=user.id,
                token_hash=hash_token(raw),
                expires_at=utcnow() + timedelta(minutes=self.settings.password_reset_ttl_minutes),
            )
        )
        await self.session.commit()

        company = await self.session.get(Company, user.company_id)
        reset_url = f"{self.settings.frontend_url.rstrip('/')}/reset-password?token={raw}"
        try:
            await self.notifier.password_reset(
                to=user.email,
                user_name=user.name,
                company_name=company.name if company else "",
                reset_url=reset_url,
            )
        except Exception:
            logger.warning("Password reset email to user %s failed", user.id, exc_info=True)
        return raw

    async def reset_password(self, raw_token: str, new_password: str) -> None:
        result = await self.session.execute(
            select(PasswordRecoveryToken).where(
                PasswordRecoveryToken.token_hash == hash_token(raw_token),
            )
        )
        token = result.scalar_one_or_none()
        if token is None or token.used or token.expires_at < utcnow():
            raise BadRequestError("Invalid or expired token")

        user = await self.session.get(User, token.user_id)
        if user is None:
            raise BadRequestError("Invalid or expired token")

        user.password_hash = hash_password(new_password)
        user.updated_at = utcnow()
        self.session.add(user)
        # Every outstanding token of this user dies with the password change
        await self.session.execute(
            update(PasswordRecoveryToken)
            .where(
                PasswordRecoveryToken.user_id == user.id,
                PasswordRecoveryToken.used.is_(False),  # type: ignore[attr-defined]
            )
            .values(used=True)
        )
        await self.session.commit()
        logger.info("Password reset for user %s", user.id)

    # ── Best-effort side effects ──────────────────────────────

    async def _store_logo(
        self, company: Company, data_url: str | None, logo_file: LogoUpload | None,
    ) -> None:
        if logo_file is None and not data_url:
            return
        try:
            if logo_file is not None:
                url = await self.store.save(company.id, logo_file.content, logo_file.content_type)
            else:
                url = await self.store.save_data_url(company.id, data_url or "")
        except Exception:
            logger.warning("Could not store logo for company %s", company.id, exc_info=True)
            return
        company.logo_url = url
        self.session.add(company)
        await self.session.commit()

    async def _send_welcome(self, user: User, company: Company) -> None:
        try:
            await self.notifier.welcome(
                to=user.email,
                user_name=user.name,
                company_name=company.name,
                company_phone=company.phone,
                company_address=company.address,
            )
        except Exception:
            logger.warning("Welcome email to %s failed", user.email, exc_info=True)


async def get_company_or_404(session: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await session.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company not found")
    return company
