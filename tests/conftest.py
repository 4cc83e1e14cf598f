"""
Pytest configuration for the docsession test suite.

This configuration sets up:
- Test discovery paths
- Shared fixtures following the FakeRepository pattern (fakeredis and the
  in-memory document store instead of a real Redis)
- Test markers for categorization
"""

import sys
from pathlib import Path

import fakeredis
import fakeredis.aioredis
import pytest

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
    - integration: Tests running full session flows against a store
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for session flows")


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings from its own environment."""
    from docsession.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings():
    """
    Create test settings with safe defaults.

    Returns:
        Settings: Configured settings for testing
    """
    from docsession.core.config import Settings

    return Settings(
        service_name="docsession-test",
        environment="development",
        redis_url="redis://localhost:6379",
        redis_key_prefix="test-session:",
        session_ttl_seconds=3600,
        session_cookie_name="sid",
    )


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def fake_redis():
    """
    Create a fake Redis client for testing.

    fakeredis provides a fully functional Redis-compatible interface
    (including WATCH/MULTI/EXEC) without a real Redis instance. Each
    client gets its own FakeServer so keys never leak between tests.

    Returns:
        FakeRedis: A fake Redis client with decode_responses=True
    """
    return fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )


@pytest.fixture
def redis_store(fake_redis):
    """Provide a RedisDocumentStore backed by fakeredis."""
    from docsession.sessions.store import RedisDocumentStore

    return RedisDocumentStore(
        redis_client=fake_redis, key_prefix="test-session:", ttl_seconds=3600
    )


@pytest.fixture
def memory_store():
    """Provide an empty InMemoryDocumentStore."""
    from docsession.sessions.store import InMemoryDocumentStore

    return InMemoryDocumentStore()


@pytest.fixture(params=["memory", "redis"])
def any_store(request, memory_store, redis_store):
    """Run a test once per DocumentStore implementation."""
    if request.param == "memory":
        return memory_store
    return redis_store


@pytest.fixture
def session_manager(memory_store):
    """Provide a SessionManager over the in-memory store."""
    from docsession.sessions.manager import SessionManager

    return SessionManager(store=memory_store)
