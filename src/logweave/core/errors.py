"""Structured error handling for Logweave."""

from typing import Any, Literal

from logweave.models.error import Diagnostic, ErrorCode, StructuredError

# Longest slice of offending content carried in a diagnostic.
EXCERPT_LIMIT = 200


class LogweaveError(Exception):
    """Base exception for Logweave errors.

    Wraps a StructuredError for consistent error handling.
    """

    level: Literal["warning", "error"] = "error"

    def __init__(
        self,
        code: str,
        message: str,
        remediation: str,
        retryable: bool = False,
        context: dict[str, Any] | None = None,
    ):
        self.error = StructuredError(
            code=code,
            message=message,
            remediation=remediation,
            retryable=retryable,
            context=context,
        )
        super().__init__(message)

    def to_structured_error(self) -> dict:
        """Convert to JSON-serializable dict for output."""
        return self.error.model_dump(mode="json", exclude_none=True)

    def to_diagnostic(self) -> Diagnostic:
        """Convert to a Diagnostic for the diagnostics sink."""
        return Diagnostic(
            level=self.level,
            message=self.error.message,
            code=self.error.code,
            context=self.error.context or {},
        )


class UnsupportedFormatError(LogweaveError):
    """Declared format does not match the parser, or is unknown."""

    level = "warning"

    def __init__(self, log_format: str, supported: list[str]):
        super().__init__(
            code=ErrorCode.UNSUPPORTED_FORMAT,
            message=f"Log format '{log_format}' is not supported",
            remediation=f"Supported formats: {', '.join(supported)}",
            retryable=False,
            context={"format": log_format, "supported": supported},
        )


class MalformedInputError(LogweaveError):
    """Content is not valid JSON in any shape the parser accepts."""

    def __init__(self, message: str, source: str | None = None, content: str = ""):
        context: dict[str, Any] = {"content": content[:EXCERPT_LIMIT]}
        if source:
            context["source"] = source
        super().__init__(
            code=ErrorCode.PARSE_ERROR,
            message=message,
            remediation="Check that the file is a JSON export of the declared format",
            retryable=False,
            context=context,
        )


class ShapeMismatchError(LogweaveError):
    """Valid JSON that is not the top-level array the parser requires."""

    def __init__(self, message: str, source: str | None = None, content: str = ""):
        context: dict[str, Any] = {"content": content[:EXCERPT_LIMIT]}
        if source:
            context["source"] = source
        super().__init__(
            code=ErrorCode.INVALID_FORMAT,
            message=message,
            remediation="Export the events as a JSON array",
            retryable=False,
            context=context,
        )


class FileReadError(LogweaveError):
    """Input file could not be read."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(
            code=ErrorCode.IO_ERROR,
            message=message,
            remediation="Check file permissions and path accessibility",
            retryable=True,
            context={"path": path} if path else None,
        )

