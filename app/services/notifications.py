"""Notification port used by the scheduling core, and its email adapter.

Each method returns True when a message was handed to the transport and
False when it was skipped (no recipient address). Transport failures
propagate; callers decide whether they are fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from app.core.config import Settings, get_settings
from app.services.email_templates import render_template
from app.services.mailer import Mailer
from app.services.scheduling import to_local

logger = logging.getLogger(__name__)


@dataclass
class AppointmentNotice:
    """Everything a client-facing appointment message needs."""

    appointment_id: str
    client_name: str
    client_email: str | None
    company_name: str
    company_email: str
    company_phone: str
    company_address: str
    starts_at: datetime
    service_name: str
    employee_name: str | None


class Notifier(Protocol):
    async def appointment_confirmed(self, notice: AppointmentNotice) -> bool: ...

    async def appointment_reminder(self, notice: AppointmentNotice) -> bool: ...

    async def appointment_starting_soon(self, notice: AppointmentNotice) -> bool: ...

    async def welcome(self, *, to: str, user_name: str, company_name: str,
                      company_phone: str, company_address: str) -> bool: ...

    async def password_reset(self, *, to: str, user_name: str, company_name: str,
                             reset_url: str) -> bool: ...


class EmailNotifier:
    """Renders a named template and sends it through a :class:`Mailer`."""

    def __init__(self, mailer: Mailer, settings: Settings) -> None:
        self.mailer = mailer
        self.settings = settings

    async def appointment_confirmed(self, notice: AppointmentNotice) -> bool:
        return await self._send_notice("appointment-confirmation", notice)

    async def appointment_reminder(self, notice: AppointmentNotice) -> bool:
        base = self.settings.frontend_url.rstrip("/")
        return await self._send_notice("appointment-reminder", notice, {
            "confirmUrl": f"{base}/confirm-appointment/{notice.appointment_id}",
            "rescheduleUrl": f"{base}/reschedule-appointment/{notice.appointment_id}",
        })

    async def appointment_starting_soon(self, notice: AppointmentNotice) -> bool:
        return await self._send_notice("appointment-starting-soon", notice)

    async def welcome(self, *, to: str, user_name: str, company_name: str,
                      company_phone: str, company_address: str) -> bool:
        return await self._send(to, "welcome", {
            "userName": user_name,
            "companyName": company_name,
            "companyPhone": company_phone,
            "companyAddress": company_address,
            "loginUrl": self.settings.frontend_url,
        })

    async def password_reset(self, *, to: str, user_name: str, company_name: str,
                             reset_url: str) -> bool:
        return await self._send(to, "password-reset", {
            "userName": user_name,
            "companyName": company_name,
            "resetUrl": reset_url,
            "ttlMinutes": str(self.settings.password_reset_ttl_minutes),
        })

    # ── Internal ──────────────────────────────────────────────

    async def _send_notice(
        self, template: str, notice: AppointmentNotice, extra: dict[str, str] | None = None,
    ) -> bool:
        if not notice.client_email:
            logger.info(
                "Client of appointment %s has no email; skipping %s",
                notice.appointment_id, template,
            )
            return False
        local_start = to_local(notice.starts_at, self.settings.scheduler_timezone)
        variables = {
            "clientName": notice.client_name,
            "companyName": notice.company_name,
            "companyEmail": notice.company_email,
            "companyPhone": notice.company_phone,
            "companyAddress": notice.company_address,
            "appointmentDate": local_start.strftime("%d/%m/%Y"),
            "appointmentTime": local_start.strftime("%H:%M"),
            "serviceName": notice.service_name,
            "employeeName": notice.employee_name or "Not assigned",
        }
        variables.update(extra or {})
        return await self._send(notice.client_email, template, variables)

    async def _send(self, to: str, template: str, variables: dict[str, str]) -> bool:
        subject, html = render_template(template, variables)
        await self.mailer.send(to, subject, html)
        return True


def get_notifier() -> Notifier:
    """Production notifier; API routes depend on it and tests override it."""
    settings = get_settings()
    return EmailNotifier(Mailer(settings), settings)

