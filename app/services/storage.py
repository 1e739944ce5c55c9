"""Company logo storage on the local filesystem under ``settings.uploads_dir``."""

import asyncio
import base64
import binascii
import logging
import re
import uuid
from pathlib import Path

from app.core.config import Settings, get_settings
from app.core.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

LOGO_BASENAME = "logo-empresa"

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


class LogoStore:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.root = Path(self.settings.uploads_dir)

    def company_dir(self, company_id: uuid.UUID) -> Path:
        return self.root / "companies" / str(company_id)

    async def save(self, company_id: uuid.UUID, content: bytes, mime_type: str) -> str:
        """Store a logo, replacing any previous one. Returns its public URL."""
        ext = ALLOWED_IMAGE_TYPES.get(mime_type)
        if ext is None:
            raise BadRequestError("Unsupported file type. Use JPG, PNG, GIF or WebP.")
        if not content:
            raise BadRequestError("Logo file is empty")
        if len(content) > self.settings.max_logo_size:
            raise BadRequestError(
                f"File too large. Maximum size is {self.settings.max_logo_size // (1024 * 1024)} MB."
            )

        filename = f"{LOGO_BASENAME}{ext}"
        await asyncio.to_thread(self._write, company_id, filename, content)
        logger.info("Stored logo for company %s (%d bytes)", company_id, len(content))
        return f"/uploads/companies/{company_id}/{filename}"

    async def save_data_url(self, company_id: uuid.UUID, data_url: str) -> str:
        """Store a logo sent as ``data:<mime>;base64,<payload>``."""
        match = _DATA_URL.match(data_url.strip())
        if match is None:
            raise BadRequestError("Invalid logo format. Send a base64 data URL.")
        try:
            content = base64.b64decode(match["data"], validate=True)
        except (binascii.Error, ValueError) as exc:
            raise BadRequestError("Invalid base64 logo payload") from exc
        return await self.save(company_id, content, match["mime"])

    def resolve(self, company_id: uuid.UUID, filename: str) -> Path:
        """Map a public logo URL back to a file, rejecting path traversal."""
        base = self.company_dir(company_id).resolve()
        path = (base / filename).resolve()
        if path.parent != base:
            raise NotFoundError("File not found")
        if not path.is_file():
            raise NotFoundError("File not found")
        return path

    def _write(self, company_id: uuid.UUID, filename: str, content: bytes) -> None:
        directory = self.company_dir(company_id)
        directory.mkdir(parents=True, exist_ok=True)
        for old in directory.glob(f"{LOGO_BASENAME}.*"):
            if old.name != filename:
                old.unlink(missing_ok=True)
        (directory / filename).write_bytes(content)
