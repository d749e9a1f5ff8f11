"""
Pytest fixtures for Hot Takes backend tests.
"""

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("IP_HASH_SALT", "test-salt")
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_DB", "hottakes_test")
os.environ.setdefault("POSTGRES_SSL", "false")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

FINGERPRINT = "a" * 64
OTHER_FINGERPRINT = "b" * 64
IP_HASH = "c" * 64
TAKE_ID = "11111111-1111-4111-8111-111111111111"
VALID_CONTENT = "Pineapple belongs on pizza and I will not apologize"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
async def app(mock_db_session: AsyncMock) -> AsyncGenerator[Any, None]:
    """FastAPI application with a mocked session and a fresh rate limiter per test."""
    from db.session import get_db
    from main import app as fastapi_app
    from services.rate_limiter import InMemoryRateLimitStore, RateLimiter

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db_session

    original_limiter = fastapi_app.state.rate_limiter
    fastapi_app.state.rate_limiter = RateLimiter(InMemoryRateLimitStore())
    fastapi_app.dependency_overrides[get_db] = override_get_db

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.rate_limiter = original_limiter


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def admission(app: Any, mock_db_session: AsyncMock) -> Any:
    """
    Real admission service over mocked repositories, wired into the app.

    Shares the app's rate limiter so limits are enforced end to end.
    """
    from api.deps import get_admission_service
    from services.admission import AdmissionService

    service = AdmissionService(mock_db_session, app.state.rate_limiter)
    service.takes = AsyncMock()
    service.votes = AsyncMock()
    service.reports = AsyncMock()

    app.dependency_overrides[get_admission_service] = lambda: service
    return service


@pytest.fixture
def moderation(app: Any, mock_db_session: AsyncMock) -> Any:
    """Moderation service over mocked repositories, wired into the app."""
    from api.deps import get_moderation_service
    from services.moderation import ModerationService

    service = ModerationService(mock_db_session)
    service.takes = AsyncMock()
    service.reports = AsyncMock()

    app.dependency_overrides[get_moderation_service] = lambda: service
    return service


@pytest.fixture
def fingerprint_headers() -> dict[str, str]:
    return {"X-Device-Fingerprint": FINGERPRINT}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": os.environ["ADMIN_PASSWORD"]}


@pytest.fixture
def make_take() -> Callable[..., Any]:
    """Build a Take model instance without touching the database."""
    from models.take import Take

    def _make(**overrides: Any) -> Take:
        values: dict[str, Any] = {
            "id": TAKE_ID,
            "content": VALID_CONTENT,
            "category": "food",
            "created_at": datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
            "agree_count": 0,
            "disagree_count": 0,
            "total_votes": 0,
            "controversy_score": 0.0,
            "is_hidden": False,
            "hidden_reason": None,
            "device_fingerprint": FINGERPRINT,
            "ip_hash": IP_HASH,
        }
        values.update(overrides)
        return Take(**values)

    return _make


@pytest.fixture
def make_vote() -> Callable[..., Any]:
    """Build a Vote model instance without touching the database."""
    from models.vote import Vote

    def _make(**overrides: Any) -> Vote:
        values: dict[str, Any] = {
            "id": "99999999-9999-4999-8999-999999999999",
            "take_id": TAKE_ID,
            "vote_type": "agree",
            "device_fingerprint": FINGERPRINT,
            "ip_hash": IP_HASH,
            "created_at": datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return Vote(**values)

    return _make


@pytest.fixture
def make_report() -> Callable[..., Any]:
    """Build a Report model instance without touching the database."""
    from models.report import Report

    def _make(**overrides: Any) -> Report:
        values: dict[str, Any] = {
            "id": "12121212-1212-4121-8121-121212121212",
            "take_id": TAKE_ID,
            "reason": "spam",
            "additional_info": None,
            "status": "pending",
            "reported_at": datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc),
            "reviewed_by": None,
            "reviewed_at": None,
            "device_fingerprint": FINGERPRINT,
            "ip_hash": IP_HASH,
        }
        values.update(overrides)
        return Report(**values)

    return _make
