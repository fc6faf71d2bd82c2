"""
Pytest configuration for the websession test suite.

This configuration sets up:
- Project root on sys.path for imports
- Test markers for categorization
- Isolation of the settings singleton and structlog configuration
- Shared fixtures: fake Redis client, stores, policies, test settings
"""

import io
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Tests for individual components
    - integration: Service over a real backend implementation
    - slow: Tests that take a long time to run
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Drop the cached Settings so environment changes in a test apply."""
    from websession.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def log_stream():
    """
    Route structured logs of each test into a private buffer.

    Returns:
        StringIO: Receives one JSON document per log line.
    """
    from websession.observability.logging import configure_logging, reset_logging

    stream = io.StringIO()
    configure_logging(level="DEBUG", stream=stream, force=True)
    yield stream
    reset_logging()


# =============================================================================
# Redis
# =============================================================================


@pytest_asyncio.fixture
async def fake_redis():
    """
    Provide a fake Redis client for testing.

    fakeredis runs the store's Lua scripts when installed with the lua extra.
    """
    import fakeredis.aioredis

    redis = fakeredis.aioredis.FakeRedis()
    yield redis
    await redis.aclose()


@pytest_asyncio.fixture
async def redis_store(fake_redis):
    """Provide a RedisSessionStore over fake Redis."""
    from websession.sessions.redis_store import RedisSessionStore

    return RedisSessionStore(redis_client=fake_redis, key_prefix="test:sessions:")


# =============================================================================
# Memory Store
# =============================================================================


class FakeClock:
    """Manually advanced clock for the memory store."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_store(clock):
    """Provide a MemorySessionStore driven by the fake clock."""
    from websession.sessions.memory_store import MemorySessionStore

    return MemorySessionStore(clock=clock)


# =============================================================================
# Policies and Settings
# =============================================================================


@pytest.fixture
def cookie_policy():
    from websession.models.domain import CookiePolicy, SameSite

    return CookiePolicy(
        path="/app",
        domain="example.com",
        secure=True,
        http_only=True,
        max_age=3600,
        same_site=SameSite.LAX,
    )


@pytest.fixture
def timeout_policy():
    from websession.models.domain import TimeoutPolicy

    return TimeoutPolicy(
        idle_timeout=timedelta(minutes=30),
        absolute_timeout=timedelta(hours=8),
    )


@pytest.fixture
def test_settings():
    """
    Create test settings with safe defaults.

    Returns:
        Settings: Configured settings for testing
    """
    from websession.core.config import Settings

    return Settings(
        service_name="websession-test",
        environment="development",
        redis_url="redis://localhost:6379",
        redis_pool_size=5,
        redis_key_prefix="test:sessions:",
        store_timeout_seconds=1.0,
    )
