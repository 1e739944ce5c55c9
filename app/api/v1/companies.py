"""Current company: profile, share template and logo."""

from fastapi import APIRouter, UploadFile

from app.api.deps import Auth, Session
from app.models.base import utcnow
from app.models.company import CompanyRead, ShareTemplateRead, ShareTemplateUpdate
from app.services.accounts import get_company_or_404
from app.services.sharing import SharingService
from app.services.storage import LogoStore

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("/me", response_model=CompanyRead)
async def get_my_company(auth: Auth, session: Session) -> CompanyRead:
    return CompanyRead.model_validate(await get_company_or_404(session, auth.company_id))


@router.get("/share-template", response_model=ShareTemplateRead)
async def get_share_template(auth: Auth, session: Session) -> ShareTemplateRead:
    return await SharingService(session).get_template(auth.company_id)


@router.put("/share-template", response_model=ShareTemplateRead)
async def update_share_template(
    body: ShareTemplateUpdate, auth: Auth, session: Session,
) -> ShareTemplateRead:
    return await SharingService(session).update_template(auth.company_id, body.custom_share_template)


@router.put("/logo", response_model=CompanyRead)
async def upload_logo(file: UploadFile, auth: Auth, session: Session) -> CompanyRead:
    """Replace the company logo (JPG, PNG, GIF or WebP)."""
    company = await get_company_or_404(session, auth.company_id)
    content = await file.read()
    company.logo_url = await LogoStore().save(company.id, content, file.content_type or "")
    company.updated_at = utcnow()
    session.add(company)
    await session.commit()
    await session.refresh(company)
    return CompanyRead.model_validate(company)
