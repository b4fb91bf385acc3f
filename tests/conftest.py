"""Shared fixtures: in-memory SQLite database, seed helpers and API client."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from collector import cache
from collector.config import settings
from collector.services import webhook
from collector.db.models import (
    Base,
    Digest,
    Entry,
    EntryStatus,
    Report,
    ReportStatus,
    Run,
    RunStatus,
    Type,
)
from collector.dependencies import get_db
from collector.main import app

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


class Seeder:
    """Writes fixture rows in short-lived sessions so tests see committed data."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory
        self._tick = 0

    def _next_time(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    async def _add(self, *objs):
        async with self.session_factory() as session:
            session.add_all(objs)
            await session.commit()
        return objs

    async def type(self, name: str = "papers") -> Type:
        (t,) = await self._add(Type(name=name, created_at=self._next_time()))
        return t

    async def entries(
        self,
        type_id: UUID,
        count: int = 3,
        status: str = EntryStatus.PENDING,
        run_id: Optional[UUID] = None,
    ) -> list[Entry]:
        """Entries with strictly increasing created_at, oldest first."""
        entries = [
            Entry(
                type_id=type_id,
                content=f"entry {self._tick + i + 1}",
                status=status,
                run_id=run_id,
                created_at=self._next_time(),
                modified_at=BASE_TIME,
            )
            for i in range(count)
        ]
        return list(await self._add(*entries))

    async def run(
        self,
        type_id: UUID,
        name: str = "nightly",
        status: str = RunStatus.CREATED,
        limit_count: int = 5,
    ) -> Run:
        (run,) = await self._add(
            Run(
                name=name,
                type_id=type_id,
                status=status,
                limit_count=limit_count,
                created_at=self._next_time(),
            )
        )
        return run

    async def report(
        self,
        entry_ids: list[UUID],
        run_id: Optional[UUID] = None,
        status: str = ReportStatus.PROCESSED,
    ) -> Report:
        (report,) = await self._add(
            Report(
                summary="summary",
                markdown_content="# Report",
                entry_ids=[str(i) for i in entry_ids],
                run_id=run_id,
                status=status,
                created_at=self._next_time(),
            )
        )
        return report

    async def digest(self, content: str = "# Digest") -> Digest:
        (digest,) = await self._add(
            Digest(markdown_content=content, created_at=self._next_time())
        )
        return digest

    async def get(self, model, id):
        """Fresh copy of a row, or None."""
        async with self.session_factory() as session:
            return await session.get(model, id)


class FakeWebhook:
    """httpx MockTransport handler recording every webhook call."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = "Workflow was started"
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)


@pytest.fixture
async def fake_webhook(monkeypatch):
    """Configured webhook URL answered by an in-process handler."""
    fake = FakeWebhook()
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    monkeypatch.setattr(settings, "WEBHOOK_URL", "http://n8n.test/webhook/collector")
    monkeypatch.setattr(webhook, "_client", client)
    yield fake
    await client.aclose()


@pytest.fixture(autouse=True)
def clear_query_cache():
    cache.clear_cache()
    yield
    cache.clear_cache()


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
async def client(session_factory):
    """API client with the request session bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
