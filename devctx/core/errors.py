"""Typed error hierarchy and user-facing error rendering.

Every error carries an ``ErrorKind`` set where it is raised, so the
rendering layer switches on the kind instead of inspecting message text.
"""

from enum import Enum

BANNER = "=" * 59

# Settings a configuration error points the operator at when the
# offending field is unknown.
REQUIRED_SETTING_HINTS = {
    "SUPABASE_URL": "SUPABASE_URL (e.g., https://your-project.supabase.co)",
    "SUPABASE_SERVICE_ROLE_KEY": "SUPABASE_SERVICE_ROLE_KEY",
    "OPENAI_API_KEY": "OPENAI_API_KEY",
}


class ErrorKind(str, Enum):
    """Discriminant for DevContextError subclasses."""

    CONFIGURATION = "configuration"
    SCOPE_INVALID = "scope_invalid"
    BACKEND = "backend"
    EMBEDDING = "embedding"
    EMPTY_INPUT = "empty_input"


class DevContextError(Exception):
    """Base class for errors surfaced by the retrieval pipeline."""

    kind: ErrorKind = ErrorKind.BACKEND


class ConfigurationError(DevContextError):
    """Raised when a required credential or connection setting is absent."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class ScopeNotFoundError(DevContextError):
    """Raised when a scope is unknown or inactive in the scope registry."""

    kind = ErrorKind.SCOPE_INVALID

    def __init__(self, scope: str, available_scopes: list[str]):
        super().__init__(
            f'Invalid scope: "{scope}". Available scopes: {", ".join(available_scopes)}'
        )
        self.scope = scope
        self.available_scopes = available_scopes


class BackendQueryError(DevContextError):
    """Raised when the vector search or scope registry call fails."""

    kind = ErrorKind.BACKEND


class EmbeddingError(DevContextError):
    """Raised when the embedding provider fails or returns a bad vector."""

    kind = ErrorKind.EMBEDDING


class EmptyInputError(DevContextError):
    """Raised when an inbound command is empty."""

    kind = ErrorKind.EMPTY_INPUT


def _render_configuration_checklist(error: ConfigurationError) -> str:
    names = error.missing or list(REQUIRED_SETTING_HINTS)
    lines = [
        "",
        BANNER,
        "CONFIGURATION ERROR",
        BANNER,
        "The service is missing required environment variables.",
        "",
        "Please ensure the following are set:",
    ]
    lines.extend(f"- {REQUIRED_SETTING_HINTS.get(name, name)}" for name in names)
    lines.extend(
        [
            "",
            "If running locally, create a .env file in the service directory.",
            "If running in a hosted environment, set these in its dashboard.",
            BANNER,
        ]
    )
    return "\n".join(lines) + "\n"


def render_error(error: Exception, operation: str = "context-aware prompt") -> str:
    """
    Render an error as plain, human-readable text for the caller.

    Args:
        error: Exception raised while serving the request
        operation: Short description of what was being generated

    Returns:
        Message text, never a stack trace
    """
    if not isinstance(error, DevContextError):
        return f"Error generating {operation}: {error or 'Unknown error occurred'}\n"

    if error.kind is ErrorKind.EMPTY_INPUT:
        return f"Error: {error}"

    text = f"Error generating {operation}: {error}\n\n"

    if error.kind is ErrorKind.CONFIGURATION:
        text += _render_configuration_checklist(error)
    elif error.kind is ErrorKind.SCOPE_INVALID:
        text += "Use one of the available scopes as the application name in your command.\n"
    elif error.kind in (ErrorKind.BACKEND, ErrorKind.EMBEDDING):
        text += (
            "The context backend could not be queried. Check the Supabase RPC "
            "functions and the embedding provider configuration.\n"
        )

    return text
