from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy.pool import NullPool

from store_ratings.main import create_app
from store_ratings.models.models import Role
from store_ratings.services import security
from store_ratings.services.db.engine import AsyncDbEngine
from store_ratings.services.security import create_access_token
from store_ratings.services.stores import StoreService
from store_ratings.services.users import UserService
from store_ratings.settings import Settings

PASSWORD = "Secret@123"

USER_NAME = "Regular Test User Number One"
OTHER_NAME = "Another Regular Test User Two"
OWNER_NAME = "Store Owner Test Account Name"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        security,
        "pwd_context",
        CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=4),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SECRET_KEY="test-secret-key",
        LOKI_URL=None,
        DEFAULT_ADMIN_EMAIL="admin@example.com",
        DEFAULT_ADMIN_PASSWORD="Admin@123",
    )


@pytest.fixture
def db_engine(tmp_path: Path):
    engine = AsyncDbEngine(
        f"sqlite+aiosqlite:///{tmp_path / 'ratings.db'}",
        poolclass=NullPool,
    )
    asyncio.run(engine.create_tables())
    yield engine
    asyncio.run(engine.dispose())


def run_in_session(db_engine: AsyncDbEngine, fn):
    """Runs `await fn(session)` on a fresh session and returns its result."""

    async def _run():
        async with db_engine.create_session() as session:
            return await fn(session)

    return asyncio.run(_run())


@pytest.fixture
def seeded(db_engine: AsyncDbEngine, settings: Settings) -> dict:
    async def _seed(session):
        users = UserService(session)
        admin = await users.ensure_admin(settings)
        user = await users.create_user(USER_NAME, "user@example.com", "1 User Road", PASSWORD)
        other = await users.create_user(OTHER_NAME, "other@example.com", "2 Other Road", PASSWORD)
        owner = await users.create_user(
            OWNER_NAME, "owner@example.com", "3 Owner Road", PASSWORD, Role.STORE_OWNER
        )
        stores = StoreService(session)
        bakery = await stores.create_store(
            "Corner Bakery", "bakery@example.com", "10 Main Street", owner.id
        )
        books = await stores.create_store("Book Nook", "books@example.com", "22 Side Street")
        return {
            "admin": admin.id,
            "user": user.id,
            "other": other.id,
            "owner": owner.id,
            "bakery": bakery.id,
            "books": books.id,
        }

    return run_in_session(db_engine, _seed)


@pytest.fixture
def client(settings: Settings, db_engine: AsyncDbEngine) -> TestClient:
    app = create_app(settings=settings, db_engine=db_engine)
    return TestClient(app)


@pytest.fixture
def auth_headers(settings: Settings, seeded: dict):
    def _headers(key: str, role: Role) -> dict:
        token = create_access_token({"id": seeded[key], "role": role.value}, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
