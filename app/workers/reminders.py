"""Periodic jobs: daily appointment reminders and the hourly "starting soon" sweep.

Companies are processed one after another, each in its own session, so a
failure in one company is logged and counted without stopping the others.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable

from sqlmodel import select

from app.core.database import async_session_factory
from app.models.appointment import ReminderRunResult
from app.models.base import utcnow
from app.models.company import Company
from app.services.appointments import AppointmentsService
from app.services.notifications import Notifier, get_notifier

logger = logging.getLogger(__name__)

Run = Callable[[AppointmentsService, uuid.UUID], Awaitable[ReminderRunResult]]


async def _active_company_ids() -> list[uuid.UUID]:
    async with async_session_factory() as session:
        result = await session.execute(
            select(Company.id).where(Company.is_active == True)  # noqa: E712
        )
        return list(result.scalars().all())


async def _for_each_company(label: str, run: Run, notifier: Notifier) -> dict:
    totals = {"companies": 0, "failed_companies": 0, "sent": 0, "errors": 0, "skipped": 0}
    for company_id in await _active_company_ids():
        totals["companies"] += 1
        try:
            async with async_session_factory() as session:
                result = await run(AppointmentsService(session, notifier), company_id)
        except Exception:
            totals["failed_companies"] += 1
            logger.exception("%s failed for company %s", label, company_id)
            continue
        totals["sent"] += result.sent
        totals["errors"] += result.errors
        totals["skipped"] += result.skipped

    logger.info(
        "%s: %d companies (%d failed), %d sent, %d errors, %d skipped",
        label, totals["companies"], totals["failed_companies"],
        totals["sent"], totals["errors"], totals["skipped"],
    )
    return totals


async def send_daily_reminders(ctx: dict) -> dict:
    """Cron job: remind clients of tomorrow's appointments, company by company.

    ``ctx["notifier"]`` may carry a notifier (tests inject a fake); otherwise
    the production email notifier is used.
    """
    notifier = ctx.get("notifier") or get_notifier()
    now = ctx.get("now") or utcnow()
    return await _for_each_company(
        "Daily reminders",
        lambda svc, company_id: svc.send_reminders(company_id, now),
        notifier,
    )


async def send_urgent_reminders(ctx: dict) -> dict:
    """Cron job: one "starting soon" notice per appointment within the next hour."""
    notifier = ctx.get("notifier") or get_notifier()
    now = ctx.get("now") or utcnow()
    return await _for_each_company(
        "Urgent reminders",
        lambda svc, company_id: svc.send_urgent_reminders(company_id, now),
        notifier,
    )
