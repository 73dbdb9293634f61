from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from user_records.core.config import Settings
from user_records.core.security import PasswordHasher
from user_records.db.base import Base
from user_records.db.session import build_engine, build_session_factory, get_session
from user_records.main import create_app
from user_records.repositories.users import UserRepository


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'users.db'}",
        password_hash_rounds=4,
        password_hash_workers=2,
    )


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4, max_workers=2)


@pytest.fixture()
def app(settings: Settings, hasher: PasswordHasher) -> FastAPI:
    return create_app(settings, password_hasher=hasher)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def session(settings: Settings) -> AsyncIterator[AsyncSession]:
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with get_session(build_session_factory(engine)) as db_session:
        yield db_session
    await engine.dispose()


@pytest.fixture()
def repository(session: AsyncSession) -> UserRepository:
    return UserRepository(session)


def make_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Mr",
        "firstName": "A",
        "lastName": "B",
        "email": "a@b.com",
        "role": "User",
        "password": "secret1",
        "confirmPassword": "secret1",
    }
    payload.update(overrides)
    return payload


def make_fields(**overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "title": "Ms",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "role": "Admin",
        "hashed_password": "not-a-real-hash",
    }
    fields.update(overrides)
    return fields
