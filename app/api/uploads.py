"""Public file serving for uploaded company logos."""

import uuid

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.services.storage import LogoStore

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/companies/{company_id}/{filename}", include_in_schema=False)
async def serve_company_file(company_id: uuid.UUID, filename: str) -> FileResponse:
    return FileResponse(LogoStore().resolve(company_id, filename))
