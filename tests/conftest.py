"""Shared test fixtures — async SQLite DB, recording notifier and test client."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Import all models so metadata is populated
import app.models  # noqa: F401
from app.api.deps import get_notifier
from app.core import cache
from app.core.config import get_settings
from app.core.database import get_session
from app.main import app
from app.models.activity_branch import ActivityBranch, DefaultActivityService
from app.services.notifications import AppointmentNotice

BRANCH_DEFAULTS = [
    ("Oil change", "Engine oil and filter", True),
    ("Brake service", "Pads and discs", False),
    ("Tyre rotation", "Rotate all four tyres", False),
]


def _enable_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RecordingNotifier:
    """In-memory notifier: records what would have been sent.

    Appointment notices without a client email are skipped, like the
    email notifier. Set ``fail`` to make every send raise.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []
        self.fail = False

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.sent]

    async def _record(self, kind: str, payload: dict) -> bool:
        if self.fail:
            raise RuntimeError("mail transport unavailable")
        self.sent.append((kind, payload))
        return True

    async def _notice(self, kind: str, notice: AppointmentNotice) -> bool:
        if not notice.client_email:
            return False
        return await self._record(kind, {"notice": notice})

    async def appointment_confirmed(self, notice: AppointmentNotice) -> bool:
        return await self._notice("confirmed", notice)

    async def appointment_reminder(self, notice: AppointmentNotice) -> bool:
        return await self._notice("reminder", notice)

    async def appointment_starting_soon(self, notice: AppointmentNotice) -> bool:
        return await self._notice("starting_soon", notice)

    async def welcome(self, **kwargs) -> bool:
        return await self._record("welcome", kwargs)

    async def password_reset(self, **kwargs) -> bool:
        return await self._record("password_reset", kwargs)


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    event.listen(eng.sync_engine, "connect", _enable_foreign_keys)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def uploads_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(get_settings(), "uploads_dir", str(path))
    return path


@pytest.fixture
async def client(session, notifier, uploads_dir) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session and notifier overrides."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    cache.clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    cache.clear()


@pytest.fixture
async def branch(session) -> ActivityBranch:
    """An activity branch with three default services, one favorite."""
    branch = ActivityBranch(name="Auto Repair", description="Cars and motorcycles")
    session.add(branch)
    await session.flush()
    for name, description, favorite in BRANCH_DEFAULTS:
        session.add(
            DefaultActivityService(
                activity_branch_id=branch.id,
                name=name,
                description=description,
                is_favorite_default=favorite,
            )
        )
    await session.commit()
    await session.refresh(branch)
    return branch


@pytest.fixture
def register(client: AsyncClient, branch: ActivityBranch):
    """Factory: register a company and return its auth headers and payload."""

    async def _register(slug: str, **overrides) -> dict:
        body = {
            "company_name": f"{slug.title()} Garage",
            "email": f"owner@{slug}.example.com",
            "password": "secret123",
            "name": f"{slug.title()} Owner",
            "phone": "+1 555 0100",
            "address": "1 Main Street",
            "activity_branch_id": str(branch.id),
        }
        body.update(overrides)
        resp = await client.post("/v1/auth/register", json=body)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
        return data

    return _register
