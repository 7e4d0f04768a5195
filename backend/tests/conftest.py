"""
Test configuration and fixtures.

Provides:
- A throwaway SQLite database, recreated for every test
- A fakeredis-backed cache and a recording email service, injected through
  dependency overrides
- JWT minting for organizations, as the identity provider would issue them
- HTTPX AsyncClient bound to the ASGI app
"""
import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

TEST_JWT_SECRET = "test-secret-for-coalition-suite-0123456789"
_DB_PATH = os.path.join(tempfile.gettempdir(), f"coalition-tests-{os.getpid()}.db")

# Settings are read once; configure them before the app is imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["AUTH_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["CACHE_ENABLED"] = "false"
os.environ["EMAIL_API_KEY"] = "test-key"

import fakeredis
import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from coalition.main import app
from coalition.models import Base
from coalition.models.base import AsyncSessionLocal, engine
from coalition.models.organization import Organization
from coalition.services.cache import CacheService, get_cache
from coalition.services.email_service import EmailDeliveryError, EmailMessage, get_email_service


# =============================================================================
# Collaborator fakes
# =============================================================================

class RecordingEmailService:
    """Stands in for the email provider; records every message it accepts."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()

    def _deliver(self, message: EmailMessage) -> str:
        if message.to.lower() in self.fail_for:
            raise EmailDeliveryError(f"Email API returned 500 for {message.to}")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"

    def send(self, message: EmailMessage) -> str:
        return self._deliver(message)

    async def send_async(self, message: EmailMessage) -> str:
        return self._deliver(message)

    @property
    def recipients(self) -> list[str]:
        return [m.to for m in self.sent]


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def setup_database() -> AsyncGenerator[None, None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture
async def db(setup_database):
    async with AsyncSessionLocal() as session:
        yield session


# =============================================================================
# Organizations and auth
# =============================================================================

async def make_organization(db, name: str = "Test Organization", **fields) -> Organization:
    slug = name.lower().replace(" ", "-")
    values = {
        "auth_user_id": f"user_{uuid.uuid4().hex[:12]}",
        "name": name,
        "email": f"{slug}@example.org",
        "status": "ACTIVE",
        "role": "MEMBER",
        "tags": [],
    }
    values.update(fields)
    organization = Organization(**values)
    db.add(organization)
    await db.commit()
    await db.refresh(organization)
    return organization


def make_token(subject: str, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    payload = {
        "sub": subject,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(organization: Organization) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(organization.auth_user_id)}"}


@pytest.fixture
async def admin(db) -> Organization:
    return await make_organization(db, "Coalition Staff", role="ADMIN")


@pytest.fixture
async def member(db) -> Organization:
    return await make_organization(db, "Healthy Aging Nashville", tags=["healthcare"])


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture
async def fake_redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache(fake_redis) -> CacheService:
    return CacheService(fake_redis)


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
async def client(setup_database, cache, email_service) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_email_service] = lambda: email_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
