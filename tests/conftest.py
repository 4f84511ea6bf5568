"""pytest fixtures shared across all tests."""

from __future__ import annotations

import asyncio
import contextlib
import os
from unittest.mock import AsyncMock

# Must be set before userdeck reads its (cached) settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_DEBUG", "true")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from userdeck.core.cache import MemoryCache
from userdeck.core.config import Settings
from userdeck.core.mailer import Mailer
from userdeck.core.tasks import TaskQueue
from userdeck.models.base import Base
from userdeck.services.auth import AuthService
from userdeck.services.sessions import SessionsStore
from userdeck.services.uploader import Uploader
from userdeck.services.users import UsersService

# SQLite in-memory for tests, no PostgreSQL required.
# Each test function gets its own fresh DB to avoid cross-test pollution.
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create a fresh in-memory SQLite engine per test function."""
    eng = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Yield an async session bound to the test engine."""
    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=True)
    async with factory() as session:
        yield session


@pytest.fixture
def cache():
    return MemoryCache(default_ttl=600)


@pytest.fixture
def sessions(cache):
    return SessionsStore(cache)


@pytest.fixture
def tasks():
    return TaskQueue(max_attempts=2, backoff_seconds=0)


@pytest.fixture
def media_settings(tmp_path):
    return Settings(
        media_root=tmp_path / "media",
        media_url="http://test/media",
        max_file_size=1024 * 1024,
        picture_max_size=64,
    )


@pytest.fixture
def uploader(media_settings):
    return Uploader(media_settings)


@pytest.fixture
def mailer():
    return AsyncMock(spec=Mailer)


@pytest.fixture
def users_service(db_session, sessions, uploader, tasks):
    return UsersService(db_session, sessions, uploader=uploader, tasks=tasks)


@pytest.fixture
def auth_service(users_service, sessions, mailer, tasks):
    return AuthService(users_service, sessions, mailer, tasks)


@pytest.fixture
def run_tasks(tasks):
    """Drain the task queue with a short-lived worker."""

    async def _run() -> None:
        worker = asyncio.create_task(tasks.run())
        try:
            await asyncio.wait_for(tasks.join(), timeout=5)
        finally:
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker

    return _run


@pytest_asyncio.fixture
async def client(engine, cache, tasks, uploader, mailer):
    """HTTPX async test client wired to the FastAPI app with test backends."""
    from userdeck.api.app import create_app
    from userdeck.api.dependencies import (
        get_cache_backend,
        get_db,
        get_mailer,
        get_tasks,
        get_uploader,
    )

    app = create_app()
    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=True)

    async def override_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_cache_backend] = lambda: cache
    app.dependency_overrides[get_tasks] = lambda: tasks
    app.dependency_overrides[get_uploader] = lambda: uploader
    app.dependency_overrides[get_mailer] = lambda: mailer

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def sign_in(client, mailer, run_tasks):
    """Sign up, confirm and return the token response for a new account."""

    async def _sign_in(
        email: str = "john@mail.com", name: str = "John Doe", password: str = "Sup3rSecret!"
    ) -> dict:
        r = await client.post(
            "/api/v1/auth/sign-up",
            json={"email": email, "name": name, "password1": password, "password2": password},
        )
        assert r.status_code == 201, r.text
        await run_tasks()
        token = mailer.send_confirmation_email.await_args.args[2]
        r = await client.post("/api/v1/auth/confirm-email", json={"confirmation_token": token})
        assert r.status_code == 200, r.text
        return r.json()

    return _sign_in