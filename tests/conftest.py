"""Pytest configuration and fixtures."""

import os

import pytest

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ["DEVCTX_ENV"] = "test"
os.environ["API_KEY_AUTH_ENABLED"] = "false"


@pytest.fixture(autouse=True)
def clear_cached_clients():
    """Drop cached settings and clients so each test sees its own environment."""
    from devctx.core.config import get_settings
    from devctx.core.embeddings import _create_client
    from devctx.db.supabase_client import get_supabase

    get_settings.cache_clear()
    get_supabase.cache_clear()
    _create_client.cache_clear()
    yield
    get_settings.cache_clear()
    get_supabase.cache_clear()
    _create_client.cache_clear()


@pytest.fixture
def settings():
    """Settings built from the test environment."""
    from devctx.core.config import get_settings

    return get_settings()


@pytest.fixture
def backend():
    """In-memory stand-in for the vector store and scope registry."""
    from tests.fakes.fake_backend import FakeBackend

    return FakeBackend()
