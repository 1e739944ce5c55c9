"""Company service catalog: copies from activity-branch defaults and CSV import."""

from __future__ import annotations

import csv
import io
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import BadRequestError, NotFoundError
from app.models.activity_branch import (
    ActivityBranch,
    AvailableDefaultService,
    DefaultActivityService,
)
from app.models.service import (
    CsvImportResult,
    ImportResult,
    SelectiveImportRequest,
    Service,
)

logger = logging.getLogger(__name__)

_HEADER_NAMES = {("name", "description"), ("nome", "descricao")}


@dataclass
class CsvRow:
    line: int
    name: str
    description: str


def parse_services_csv(text: str) -> tuple[list[CsvRow], list[str]]:
    """Parse ``name,description`` rows.

    Returns the valid rows and one ``"Line N: ..."`` message per rejected
    row. Blank lines and a leading header row are ignored.
    """
    rows: list[CsvRow] = []
    errors: list[str] = []
    reader = csv.reader(io.StringIO(text))
    first = True
    for record in reader:
        line = reader.line_num
        cells = [c.strip() for c in record]
        if not any(cells):
            continue
        name = cells[0] if cells else ""
        description = cells[1] if len(cells) > 1 else ""
        if first:
            first = False
            if (name.lower(), description.lower()) in _HEADER_NAMES:
                continue
        if not name:
            errors.append(f"Line {line}: name is required")
            continue
        if not description:
            errors.append(f"Line {line}: description is required")
            continue
        rows.append(CsvRow(line=line, name=name, description=description))
    return rows, errors


def _service_from_default(
    company_id: uuid.UUID, default: DefaultActivityService,
) -> Service:
    return Service(
        company_id=company_id,
        name=default.name,
        description=default.description,
        is_favorite=default.is_favorite_default,
        is_from_activity_branch=True,
        is_system_default=True,
        activity_branch_id=default.activity_branch_id,
    )


async def copy_branch_defaults(
    session: AsyncSession, company_id: uuid.UUID, activity_branch_id: uuid.UUID,
) -> int:
    """Stage a copy of every branch default for a new company. Caller commits."""
    result = await session.execute(
        select(DefaultActivityService).where(
            DefaultActivityService.activity_branch_id == activity_branch_id,
        )
    )
    defaults = result.scalars().all()
    for default in defaults:
        session.add(_service_from_default(company_id, default))
    return len(defaults)


class CatalogService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def import_branch(
        self, company_id: uuid.UUID, activity_branch_id: uuid.UUID,
    ) -> ImportResult:
        """Copy all of a branch's defaults the company has not imported yet."""
        await self._get_branch(activity_branch_id)
        defaults = await self._defaults(activity_branch_id)
        if not defaults:
            return ImportResult(message="No default services for this activity branch", imported=0)
        return await self._import(company_id, activity_branch_id, defaults)

    async def available(
        self, company_id: uuid.UUID, activity_branch_id: uuid.UUID,
    ) -> list[AvailableDefaultService]:
        await self._get_branch(activity_branch_id)
        defaults = await self._defaults(activity_branch_id)
        imported = await self._imported_names(company_id, activity_branch_id)
        return [
            AvailableDefaultService(
                id=d.id,
                activity_branch_id=d.activity_branch_id,
                name=d.name,
                description=d.description,
                is_favorite_default=d.is_favorite_default,
                already_imported=d.name.lower() in imported,
            )
            for d in defaults
        ]

    async def import_selected(
        self, company_id: uuid.UUID, body: SelectiveImportRequest,
    ) -> ImportResult:
        wanted = set(body.default_service_ids)
        result = await self.session.execute(
            select(DefaultActivityService)
            .where(
                DefaultActivityService.id.in_(wanted),  # type: ignore[attr-defined]
                DefaultActivityService.activity_branch_id == body.activity_branch_id,
            )
            .order_by(DefaultActivityService.name.asc())  # type: ignore[attr-defined]
        )
        defaults = list(result.scalars().all())
        if not defaults:
            raise NotFoundError("No default services found for the given ids")
        if len(defaults) != len(wanted):
            raise BadRequestError(
                "Some service ids are invalid or do not belong to the activity branch"
            )
        return await self._import(company_id, body.activity_branch_id, defaults)

    async def import_csv(self, company_id: uuid.UUID, content: bytes) -> CsvImportResult:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise BadRequestError("CSV file must be UTF-8 encoded") from exc

        rows, errors = parse_services_csv(text)
        failed = len(errors)
        if not rows:
            return CsvImportResult(
                message="No services were imported",
                imported=0,
                failed=failed,
                errors=errors or ["No valid rows found in the CSV file"],
            )

        result = await self.session.execute(
            select(Service.name).where(Service.company_id == company_id)
        )
        seen = {name.lower() for name in result.scalars().all()}

        imported = 0
        duplicates = 0
        for row in rows:
            key = row.name.lower()
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            self.session.add(
                Service(company_id=company_id, name=row.name, description=row.description)
            )
            imported += 1
        if duplicates:
            errors.append(f"{duplicates} services already exist and were skipped")

        await self.session.commit()
        logger.info(
            "CSV import for company %s: %d imported, %d failed, %d duplicates",
            company_id, imported, failed, duplicates,
        )
        message = f"{imported} services imported"
        if failed:
            message += f", {failed} failed"
        return CsvImportResult(message=message, imported=imported, failed=failed, errors=errors)

    # ── Internal ──────────────────────────────────────────────

    async def _get_branch(self, activity_branch_id: uuid.UUID) -> ActivityBranch:
        branch = await self.session.get(ActivityBranch, activity_branch_id)
        if branch is None:
            raise NotFoundError("Activity branch not found")
        return branch

    async def _defaults(self, activity_branch_id: uuid.UUID) -> list[DefaultActivityService]:
        result = await self.session.execute(
            select(DefaultActivityService)
            .where(DefaultActivityService.activity_branch_id == activity_branch_id)
            .order_by(DefaultActivityService.name.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def _imported_names(
        self, company_id: uuid.UUID, activity_branch_id: uuid.UUID,
    ) -> set[str]:
        result = await self.session.execute(
            select(Service.name).where(
                Service.company_id == company_id,
                Service.is_from_activity_branch.is_(True),  # type: ignore[attr-defined]
                Service.activity_branch_id == activity_branch_id,
            )
        )
        return {name.lower() for name in result.scalars().all()}

    async def _import(
        self,
        company_id: uuid.UUID,
        activity_branch_id: uuid.UUID,
        defaults: list[DefaultActivityService],
    ) -> ImportResult:
        imported_names = await self._imported_names(company_id, activity_branch_id)
        to_copy = [d for d in defaults if d.name.lower() not in imported_names]
        skipped = len(defaults) - len(to_copy)
        if not to_copy:
            return ImportResult(
                message="All selected services were already imported",
                imported=0,
                skipped=skipped,
                total=len(defaults),
            )

        for default in to_copy:
            self.session.add(_service_from_default(company_id, default))
        await self.session.commit()
        logger.info(
            "Imported %d services from branch %s into company %s",
            len(to_copy), activity_branch_id, company_id,
        )
        return ImportResult(
            message=f"{len(to_copy)} services imported",
            imported=len(to_copy),
            skipped=skipped,
            total=len(defaults),
        )
