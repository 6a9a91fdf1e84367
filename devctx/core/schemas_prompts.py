"""Pydantic schemas for the prompt and rules endpoints."""

from pydantic import BaseModel, Field


class CommandRequest(BaseModel):
    """Natural-language command for a prompt operation."""

    command: str = Field(
        default="",
        description=(
            "Command in natural language. Examples: 'dev rac implementa la nueva sección "
            "booking-search', 'test partners add unit tests for auth flow', "
            "'gen-tasks rac implementar buscador de reservas'"
        ),
    )


class PromptResponse(BaseModel):
    """Rendered prompt text, or a human-readable error message."""

    text: str = Field(..., description="Prompt ready for the coding agent, or error text")
    is_error: bool = Field(default=False, description="True when text is an error message")
    error_kind: str | None = Field(default=None, description="Error discriminant when is_error")
    context_found: dict[str, bool] = Field(
        default_factory=dict, description="Retrieval hit/miss per context aspect"
    )


class RulesRequest(BaseModel):
    """Context for a rules lookup."""

    context: str | None = Field(
        default=None,
        description=(
            "Task being worked on, e.g. 'implementa los test de "
            "EmailSendBookingAgencyService' or 'implementa el servicio de usuarios'"
        ),
    )


class RulesResponse(BaseModel):
    text: str = Field(..., description="Rendered rules content")
    rule_types: list[str] = Field(default_factory=list, description="Detected rule types")
    description: str = Field(..., description="What rules were provided")
