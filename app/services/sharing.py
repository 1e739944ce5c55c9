"""Shareable text for completed attendances, from a per-company template."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import Settings, get_settings
from app.core.exceptions import ForbiddenError, NotFoundError
from app.models.attendance import Attendance, AttendanceService
from app.models.base import utcnow
from app.models.client import Client
from app.models.company import Company, ShareTemplateRead, ShareTextRead
from app.models.service import Service
from app.services.scheduling import to_local

logger = logging.getLogger(__name__)

DEFAULT_SHARE_TEMPLATE = """Service provided by {companyName}

📅 Date: {attendanceDate}
⚙️ Services: {services}
👤 Client: {clientName}
📞 Phone: {clientPhone}

Thank you for your trust!"""

SHARE_VARIABLES = [
    "{companyName}",
    "{attendanceDate}",
    "{services}",
    "{clientName}",
    "{clientPhone}",
]


def render_share_text(template: str, values: dict[str, str]) -> str:
    """Replace each ``{token}`` with its value; other text is left untouched."""
    text = template
    for name, value in values.items():
        text = text.replace("{" + name + "}", value)
    return text


class SharingService:
    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    async def get_template(self, company_id: uuid.UUID) -> ShareTemplateRead:
        company = await self._company(company_id)
        return ShareTemplateRead(
            custom_share_template=company.custom_share_template or DEFAULT_SHARE_TEMPLATE,
            default_template=DEFAULT_SHARE_TEMPLATE,
            available_variables=SHARE_VARIABLES,
        )

    async def update_template(self, company_id: uuid.UUID, template: str) -> ShareTemplateRead:
        company = await self._company(company_id)
        company.custom_share_template = template
        company.updated_at = utcnow()
        self.session.add(company)
        await self.session.commit()
        return await self.get_template(company_id)

    async def share_attendance(
        self, attendance_id: uuid.UUID, company_id: uuid.UUID,
    ) -> ShareTextRead:
        attendance = await self.session.get(Attendance, attendance_id)
        if attendance is None:
            raise NotFoundError("Attendance not found")
        if attendance.company_id != company_id:
            raise ForbiddenError("Attendance does not belong to your company")
        if attendance.completed_at is None:
            raise ForbiddenError("Only completed attendances can be shared")

        company = await self._company(company_id)
        client = await self.session.get(Client, attendance.client_id)
        result = await self.session.execute(
            select(Service.name)
            .join(AttendanceService, AttendanceService.service_id == Service.id)
            .where(AttendanceService.attendance_id == attendance.id)
            .order_by(AttendanceService.created_at.asc())  # type: ignore[attr-defined]
        )
        service_names = list(result.scalars().all())

        attended = to_local(attendance.attended_at, self.settings.scheduler_timezone)
        text = render_share_text(
            company.custom_share_template or DEFAULT_SHARE_TEMPLATE,
            {
                "companyName": company.name,
                "attendanceDate": attended.strftime("%d/%m/%Y"),
                "services": ", ".join(service_names),
                "clientName": client.name if client else "",
                "clientPhone": client.phone if client else "",
            },
        )
        logger.info("Share text generated for attendance %s", attendance.id)
        return ShareTextRead(share_text=text, attendance_id=attendance.id, shared_at=utcnow())

    async def _company(self, company_id: uuid.UUID) -> Company:
        company = await self.session.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company not found")
        return company
