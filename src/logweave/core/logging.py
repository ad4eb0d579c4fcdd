"""Logging and diagnostics utilities for Logweave.

All log output goes to stderr to keep stdout clean for the
machine-readable bundle (JSON/JSONL).
"""

import json
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Literal

from logweave.models.error import Diagnostic

LogLevel = Literal["debug", "info", "warning", "error"]

DiagnosticSink = Callable[[Diagnostic], None]

_verbose = False
_quiet = False
_log_format: Literal["text", "json"] = "text"


def set_verbose(verbose: bool) -> None:
    """Set verbose mode."""
    global _verbose
    _verbose = verbose


def configure_logging(
    log_format: Literal["text", "json"] = "text",
    quiet: bool = False,
) -> None:
    """Configure logging settings.

    Args:
        log_format: Output format for log messages
        quiet: Suppress info output
    """
    global _log_format, _quiet
    _log_format = log_format
    _quiet = quiet


def log(
    message: str,
    level: LogLevel = "info",
    **context: Any,
) -> None:
    """Log a message to stderr.

    Args:
        message: Log message
        level: Log level
        **context: Additional context to include
    """
    if _quiet and level in ("debug", "info"):
        return

    if level == "debug" and not _verbose:
        return

    if _log_format == "json":
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "message": message,
            **context,
        }
        print(json.dumps(log_entry, default=str), file=sys.stderr)
    else:
        prefix = f"[{level.upper()}]" if level != "info" else ""
        if prefix:
            print(f"{prefix} {message}", file=sys.stderr)
        else:
            print(message, file=sys.stderr)


def info(message: str, **context: Any) -> None:
    """Log an info message."""
    log(message, level="info", **context)


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default diagnostics sink: forward to stderr logging."""
    context = dict(diagnostic.context)
    if diagnostic.code:
        context["code"] = diagnostic.code
    log(diagnostic.message, level=diagnostic.level, **context)


class DiagnosticCollector:
    """Sink that keeps diagnostics in memory.

    Useful for callers that display signals next to the bundle.
    """

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def by_level(self, level: LogLevel) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level == level]
