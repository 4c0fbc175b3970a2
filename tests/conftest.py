# tests/conftest.py

import os
import uuid

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
os.environ["LANDING_URL"] = "/"

import pytest
from httpx import AsyncClient, ASGITransport
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend

from main import app
from database import engine, async_session_maker
from models import Base
from links.models import metadata as links_metadata


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def setup_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(links_metadata.create_all)
    FastAPICache.init(InMemoryBackend(), prefix="test-cache")
    yield
    async with engine.begin() as conn:
        await conn.run_sync(links_metadata.drop_all)
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session(setup_database):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def client(setup_database):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def login(client):
    """Register a fresh user and return its bearer auth headers."""

    async def _login(password: str = "default") -> dict:
        email = f"{uuid.uuid4().hex}@test.com"
        response = await client.post(
            "/auth/register", json={"email": email, "password": password}
        )
        assert response.status_code == 201
        response = await client.post(
            "/auth/jwt/login",
            data={"username": email, "password": password},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
