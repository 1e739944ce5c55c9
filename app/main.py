"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.uploads import router as uploads_router
from app.api.v1 import v1_router
from app.core.config import get_settings
from app.core.database import init_db
from app.core.exceptions import AppError
from app.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    logger.info("Scheduling API started")
    yield


app = FastAPI(
    title="Agenda",
    version="0.1.0",
    description="Multi-tenant appointment scheduling for small service businesses",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Domain errors ────────────────────────────────────────────
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.detail,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)
app.include_router(uploads_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
