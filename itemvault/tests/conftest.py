# itemvault/tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from itemvault.app import create_app
from itemvault.app.config import Settings
from itemvault.app.database import create_engine, create_schema, create_session_factory
from itemvault.app.security import PasswordHasher, TokenService

TEST_SECRET = 'test-secret-key-that-is-long-enough-for-hs256'


@pytest.fixture()
def settings(tmp_path) -> Settings:
    """Every test gets its own SQLite file, so no state leaks between tests."""
    return Settings(
        secret_key=TEST_SECRET,
        algorithm='HS256',
        access_token_expire_minutes=60 * 24,
        bcrypt_rounds=10,
        database_url=f'sqlite+aiosqlite:///{tmp_path / "itemvault_tests.db"}',
        environment='test',
        create_schema=True,
        e2e=False,
    )


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=10)


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session_scope(settings) -> Callable[[], AbstractAsyncContextManager[AsyncSession]]:
    """Open a session on a fresh schema inside whatever loop the test runs."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[AsyncSession]:
        engine = create_engine(settings)
        await create_schema(engine)
        try:
            async with create_session_factory(engine)() as session:
                yield session
        finally:
            await engine.dispose()

    return scope
