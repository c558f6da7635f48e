"""Shared pytest fixtures for unit and integration tests."""

import json
import os

# Settings are read at import time; configure before importing the app
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin-test-password")
os.environ["RATE_LIMIT_ENABLED"] = "false"

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from exam_portal.api import deps
from exam_portal.config import settings
from exam_portal.database import Base
from exam_portal.main import app
from exam_portal.services.school_reference import SchoolReferenceCache
import exam_portal.models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

REFERENCE_ROWS = [
    {"lgaCode": "LG03", "lCode": "3", "schCode": "45", "progID": "1",
     "schName": "Holy Trinity Grammar School", "id": "1"},
    {"lgaCode": "LG03", "lCode": "3", "schCode": "46", "progID": "1",
     "schName": "St. Mary's Secondary School", "id": "2"},
    {"lgaCode": "LG12", "lCode": "12", "schCode": "7", "progID": "2",
     "schName": "Community High School", "id": "3"},
]

SCHOOL_PASSWORD = "school-pass"


@pytest.fixture
def reference_path(tmp_path) -> str:
    """A fresh copy of the school reference dataset on disk."""
    path = tmp_path / "data.json"
    path.write_text(json.dumps(REFERENCE_ROWS), encoding="utf-8")
    return str(path)


@pytest.fixture
def school_reference(reference_path: str) -> SchoolReferenceCache:
    return SchoolReferenceCache(reference_path, ttl_seconds=300)


@pytest.fixture
async def db_engine():
    """In-memory SQLite shared across sessions through a single connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def api_base() -> str:
    """Base URL for API requests."""
    return f"http://test{settings.API_V1_PREFIX}"


@pytest.fixture
async def async_client(session_factory, school_reference, api_base: str):
    """Async HTTP client with the database and reference dataset overridden."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_school_reference] = lambda: school_reference

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=api_base, timeout=30.0) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_headers(async_client: AsyncClient, api_base: str) -> dict:
    resp = await async_client.post(
        f"{api_base}/auth/admin/login",
        json={"username": settings.ADMIN_USERNAME, "password": settings.ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


async def signup_school(client: AsyncClient, api_base: str, lga_code: str, school_code: str) -> dict:
    """Sign a school up and return its session payload plus auth headers."""
    resp = await client.post(
        f"{api_base}/auth/school/signup",
        json={"lga_code": lga_code, "school_code": school_code, "password": SCHOOL_PASSWORD},
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return {
        "school": data["school"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


@pytest.fixture
async def registered_school(async_client: AsyncClient, api_base: str) -> dict:
    """Holy Trinity Grammar School (lCode 3, schCode 45): prefix 3045."""
    return await signup_school(async_client, api_base, "3", "45")


@pytest.fixture
def school_signup(async_client: AsyncClient, api_base: str):
    """Sign up further schools from the reference dataset inside a test."""

    async def _signup(lga_code: str, school_code: str) -> dict:
        return await signup_school(async_client, api_base, lga_code, school_code)

    return _signup
