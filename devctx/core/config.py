"""Configuration management for the dev context service."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from devctx.core.errors import ConfigurationError

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass

REQUIRED_SETTINGS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "OPENAI_API_KEY")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., min_length=1, description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(
        ..., min_length=1, description="Supabase service role key"
    )

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., min_length=1, description="OpenAI API key")

    # Environment
    DEVCTX_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Embedding configuration. The dimension is pinned to the vector column in dev_contexts.
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=768, description="Embedding vector dimension")

    # Vector search configuration
    MATCH_RPC_NAME: str = Field(
        default="match_dev_contexts", description="Similarity search stored procedure"
    )
    SHARED_APPLICATION: str = Field(
        default="global", description="Application pool searched alongside every scope"
    )
    CONTEXT_TOP_K: int = Field(default=2, description="Results per context aspect")
    TEMPLATE_TOP_K: int = Field(default=1, description="Results per template slot")
    RULES_TOP_K: int = Field(default=5, description="Results for the mandatory rules block")
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = Field(
        default=15.0, gt=0, description="Bounded wait on embedding and search calls"
    )

    # Static rule documents
    RULES_DIR: str | None = Field(
        default=None, description="Directory holding *.mdc rule documents"
    )

    # API key authentication
    API_KEY_AUTH_ENABLED: bool = Field(default=True, description="Protect /v1 routes")
    ADMIN_API_KEY: str | None = Field(
        default=None, description="Static key accepted without database lookup"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()


def load_settings() -> Settings:
    """
    Build settings once at startup, failing fast on missing credentials.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a required setting is missing or blank
    """
    try:
        return get_settings()
    except ValidationError as e:
        missing = []
        for error in e.errors():
            field = str(error["loc"][0]) if error.get("loc") else ""
            if field and field not in missing:
                missing.append(field)
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing) or 'unknown'}",
            missing=missing,
        ) from e
