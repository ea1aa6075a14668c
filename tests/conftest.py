"""Pytest configuration and fixtures for reware.

Tests run against the in-memory backend: BACKEND=memory is set before the app
is imported and the settings cache is cleared so create_app() sees it.
"""

import os

os.environ["BACKEND"] = "memory"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from reware.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from reware.domain.entities import Identity  # noqa: E402
from reware.infrastructure.memory import (  # noqa: E402
    InMemoryAuthBackend,
    InMemoryDocumentStore,
    InMemoryIdentityProvider,
)
from reware.main import app  # noqa: E402
from reware.views.notifications import NotificationCenter  # noqa: E402
from tests.fakes import FakeIdentityProvider  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI), with lifespan run."""
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def accounts() -> InMemoryAuthBackend:
    """Account registry with the cheapest bcrypt cost, so tests stay fast."""
    return InMemoryAuthBackend(bcrypt_rounds=4)


@pytest.fixture
def provider(accounts: InMemoryAuthBackend) -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider(accounts)


@pytest.fixture
def fake_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def alice() -> Identity:
    return Identity(id="alice", email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob() -> Identity:
    return Identity(id="bob", email="bob@example.com")
