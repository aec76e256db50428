"""Shared fixtures: a throwaway SQLite database per test and an ASGI client."""
from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import storefront.models  # noqa: F401
from storefront.core.dependencies import get_db, get_mailer
from storefront.core.security import ResetTokenManager, SessionTokenIssuer
from storefront.db.base import Base
from storefront.main import app
from storefront.services.mailer import MailMessage


class RecordingMailer:
    """Mailer double that keeps every message it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[MailMessage] = []

    async def send(self, message: MailMessage) -> None:
        self.sent.append(message)

    def last_token(self) -> str:
        return self.sent[-1].body.rstrip().rsplit("/", 1)[-1]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront-test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer(secret_key="test-secret", expire_minutes=5)


@pytest.fixture
def reset_tokens() -> ResetTokenManager:
    return ResetTokenManager(ttl_minutes=10)


@pytest_asyncio.fixture
async def client(session_factory, mailer):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register an account over HTTP and return its bearer token."""

    async def _register(email: str, role: str | None = None, password: str = "secret1", name: str = "A") -> str:
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role
        response = await client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        return response.json()["token"]

    return _register


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_header():
    return bearer
