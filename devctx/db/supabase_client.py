"""Supabase client initialization."""

from functools import lru_cache

from supabase import Client, create_client

from devctx.core.config import load_settings
from devctx.core.errors import ConfigurationError


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get Supabase client instance (cached singleton).

    Returns:
        Supabase client configured with service role key

    Raises:
        ConfigurationError: If settings are missing or the client cannot be built
    """
    settings = load_settings()
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        # supabase-py rejects malformed URLs and keys at construction time
        raise ConfigurationError(
            f"Failed to initialize Supabase client: {e}",
            missing=["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"],
        ) from e
