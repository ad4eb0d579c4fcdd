"""Source adapters for Logweave."""

from collections.abc import Sequence

# Import parsers to register them
from logweave.parsers import (
    defender,  # noqa: F401
    elk,  # noqa: F401
    sysmon,  # noqa: F401
    wazuh,  # noqa: F401
)
from logweave.core.errors import UnsupportedFormatError
from logweave.core.logging import DiagnosticSink, log_diagnostic
from logweave.models.bundle import VisualizationBundle
from logweave.parsers.base import BaseLogParser, LogSource, ParserRegistry


async def analyze(
    files: Sequence[LogSource],
    log_format: str,
    sink: DiagnosticSink | None = None,
) -> VisualizationBundle:
    """Run the parser registered for a format over a batch of files.

    An unknown format yields an empty bundle and a warning diagnostic.

    Args:
        files: File paths or readable handles, in submission order
        log_format: Format tag (elk, defender, wazuh, sysmon)
        sink: Diagnostics sink; defaults to stderr logging

    Returns:
        VisualizationBundle for the batch
    """
    try:
        parser = ParserRegistry.create(log_format, sink=sink)
    except UnsupportedFormatError as e:
        (sink or log_diagnostic)(e.to_diagnostic())
        return VisualizationBundle()
    return await parser.parse_logs(files, log_format)


__all__ = ["BaseLogParser", "LogSource", "ParserRegistry", "analyze"]
