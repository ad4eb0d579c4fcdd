"""Structured error and diagnostic models for Logweave."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class StructuredError(BaseModel):
    """Structured error response format.

    All errors emitted by Logweave follow this schema to enable
    programmatic error handling and provide actionable remediation.
    """

    code: str = Field(
        ...,
        pattern=r"^[A-Z][A-Z0-9_]*$",
        description="Error code (e.g., PARSE_ERROR)",
        examples=[
            "UNSUPPORTED_FORMAT",
            "PARSE_ERROR",
            "INVALID_FORMAT",
            "IO_ERROR",
        ],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
    )

    remediation: str = Field(
        ...,
        description="Suggested fix or next step",
    )

    retryable: bool = Field(
        ...,
        description="Whether retry may succeed",
    )

    context: dict[str, Any] | None = Field(
        default=None,
        description="Additional context (source, format, etc.)",
    )

    model_config = {"extra": "forbid"}


class Diagnostic(BaseModel):
    """Signal emitted to the diagnostics sink during a parse run.

    Diagnostics are never part of the returned bundle.
    """

    level: Literal["debug", "info", "warning", "error"] = Field(
        ...,
        description="Severity of the signal",
    )

    message: str = Field(
        ...,
        description="Human-readable message",
    )

    code: str | None = Field(
        default=None,
        pattern=r"^[A-Z][A-Z0-9_]*$",
        description="Error code for warning and error signals",
    )

    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context (parser, source, content excerpt)",
    )

    model_config = {"extra": "forbid"}


class ErrorCode:
    """Standard error codes for Logweave."""

    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    IO_ERROR = "IO_ERROR"
