"""Base source adapter interface for Logweave."""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any, ClassVar

from pydantic import ValidationError

from logweave.core.errors import (
    FileReadError,
    LogweaveError,
    MalformedInputError,
    ShapeMismatchError,
    UnsupportedFormatError,
)
from logweave.core.logging import DiagnosticSink, LogLevel, log_diagnostic
from logweave.models.bundle import VisualizationBundle
from logweave.models.error import Diagnostic, ErrorCode
from logweave.models.events import CanonicalDataset, CanonicalEvent
from logweave.normalizer.aggregator import aggregate

LogSource = str | os.PathLike | IO[str] | IO[bytes]


def describe_source(source: LogSource, index: int) -> str:
    """Human-readable name of an input for diagnostics."""
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    return str(getattr(source, "name", f"<input {index}>"))


def decode_content(data: str | bytes) -> str:
    """Decode file content as UTF-8, dropping a leading byte order mark."""
    if isinstance(data, bytes):
        return data.decode("utf-8-sig", errors="replace")
    return data.removeprefix("\ufeff")


async def read_source(source: LogSource) -> str:
    """Read the full text of one input without blocking the event loop.

    Args:
        source: File path or readable text/binary handle

    Returns:
        Decoded file content

    Raises:
        FileReadError: If the input cannot be read
    """
    name = describe_source(source, 0)
    try:
        if hasattr(source, "read"):
            data = await asyncio.to_thread(source.read)
        else:
            data = await asyncio.to_thread(Path(source).read_bytes)
    except (OSError, ValueError) as e:
        raise FileReadError(f"Failed to read {name}: {e}", path=name) from e
    if not isinstance(data, (str, bytes)):
        raise FileReadError(
            f"Failed to read {name}: read() returned {type(data).__name__}", path=name
        )
    return decode_content(data)


class BaseLogParser(ABC):
    """Base class for all source adapters.

    Adapters implement `map_event` to place one raw event into the
    canonical categories and `detect` to derive the visualization bundle.
    Detection rules are deliberately kept per adapter.

    A parser instance runs at most one `parse_logs` call at a time per
    event loop; the guarding lock is created for each loop it runs on.
    """

    # Adapter metadata (must be set by subclasses)
    name: ClassVar[str]
    version: ClassVar[str]
    description: ClassVar[str]

    def __init__(self, sink: DiagnosticSink | None = None) -> None:
        """Initialize parser.

        Args:
            sink: Receives diagnostics; defaults to stderr logging
        """
        self.sink = sink or log_diagnostic
        self._run_lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    def _lock(self) -> asyncio.Lock:
        """Return the run lock bound to the running event loop."""
        loop = asyncio.get_running_loop()
        if self._run_lock is None or self._lock_loop is not loop:
            self._run_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._run_lock

    def emit(
        self,
        level: LogLevel,
        message: str,
        code: str | None = None,
        **context: Any,
    ) -> None:
        """Send a diagnostic to the sink."""
        context.setdefault("parser", self.name)
        self.sink(Diagnostic(level=level, message=message, code=code, context=context))

    def accepts(self, log_format: str) -> bool:
        """Check the declared format, warning when it is not ours."""
        if log_format == self.name:
            return True
        self.emit(
            "warning",
            f"{type(self).__name__} received an unsupported format: {log_format}",
            code=ErrorCode.UNSUPPORTED_FORMAT,
            format=log_format,
        )
        return False

    async def parse_logs(
        self, files: Sequence[LogSource], log_format: str
    ) -> VisualizationBundle:
        """Read, normalize and analyze a batch of files.

        Files are read one at a time; a file that cannot be read or
        parsed is skipped and the run continues.

        Args:
            files: File paths or readable handles, in submission order
            log_format: Declared format tag

        Returns:
            VisualizationBundle (empty when nothing could be parsed)
        """
        async with self._lock():
            self.emit(
                "info",
                f"Parsing {len(files)} files in {log_format} format "
                f"using {type(self).__name__}",
                file_count=len(files),
            )
            if not self.accepts(log_format):
                return self.detect(CanonicalDataset())

            datasets = []
            for index, file in enumerate(files):
                try:
                    content = await read_source(file)
                except FileReadError as e:
                    self.sink(e.to_diagnostic())
                    continue
                datasets.append(self.parse_content(content, describe_source(file, index)))

            return self.detect(aggregate(datasets))

    def parse(self, contents: Sequence[str], log_format: str) -> CanonicalDataset:
        """Normalize already-read file contents.

        Args:
            contents: Raw text of each file, in submission order
            log_format: Declared format tag

        Returns:
            Merged CanonicalDataset (empty on format mismatch)
        """
        if not self.accepts(log_format):
            return CanonicalDataset()
        return aggregate(
            self.parse_content(content, f"<input {index}>")
            for index, content in enumerate(contents)
        )

    def parse_content(self, content: str, source: str) -> CanonicalDataset:
        """Normalize the events of one file.

        Args:
            content: Raw file text
            source: Name used in diagnostics

        Returns:
            CanonicalDataset for this file (empty if it was skipped)
        """
        dataset = CanonicalDataset()
        self.emit("debug", f"Parsing {self.description} from {source}", source=source)

        try:
            events = self.load_events(content, source)
        except LogweaveError as e:
            self.sink(e.to_diagnostic())
            return dataset

        for index, event in enumerate(events):
            if not isinstance(event, dict):
                self.emit(
                    "debug",
                    f"Skipping non-object event {index} in {source}",
                    source=source,
                    index=index,
                )
                continue
            try:
                records = self.map_event(event)
            except ValidationError as e:
                self.emit(
                    "warning",
                    f"Skipping event {index} in {source}: {e.error_count()} invalid field(s)",
                    code=ErrorCode.PARSE_ERROR,
                    source=source,
                    index=index,
                )
                continue
            for record in records:
                dataset.add(record)

        return dataset

    def load_events(self, content: str, source: str) -> list[Any]:
        """Decode a file as a top-level JSON array of events.

        Raises:
            MalformedInputError: Content is not JSON
            ShapeMismatchError: JSON is not an array
        """
        try:
            events = json.loads(content)
        except (json.JSONDecodeError, RecursionError) as e:
            raise MalformedInputError(
                f"Error parsing {self.description} content as JSON: {e}",
                source=source,
                content=content,
            ) from e

        if not isinstance(events, list):
            raise ShapeMismatchError(
                f"{self.description} content is not a JSON array",
                source=source,
                content=content,
            )
        return events

    @abstractmethod
    def map_event(self, event: dict[str, Any]) -> list[CanonicalEvent]:
        """Map one raw event to its canonical records.

        Args:
            event: Raw event object

        Returns:
            Records in category order; empty when the event is ignored
        """
        ...

    @abstractmethod
    def detect(self, dataset: CanonicalDataset) -> VisualizationBundle:
        """Derive threat indicators and the attack chain.

        Args:
            dataset: Normalized records of one run (not modified)

        Returns:
            VisualizationBundle with the attack chain numbered from 1
        """
        ...


class ParserRegistry:
    """Registry of available source adapters."""

    _parsers: ClassVar[dict[str, type[BaseLogParser]]] = {}

    @classmethod
    def register(cls, parser_class: type[BaseLogParser]) -> type[BaseLogParser]:
        """Register a parser class.

        Args:
            parser_class: Parser class to register

        Returns:
            The registered class (for use as decorator)
        """
        cls._parsers[parser_class.name] = parser_class
        return parser_class

    @classmethod
    def get(cls, log_format: str) -> type[BaseLogParser] | None:
        """Get parser for a format tag.

        Args:
            log_format: Format tag (e.g., 'sysmon', 'wazuh')

        Returns:
            Parser class or None if not found
        """
        return cls._parsers.get(log_format)

    @classmethod
    def create(cls, log_format: str, sink: DiagnosticSink | None = None) -> BaseLogParser:
        """Instantiate the parser for a format tag.

        Raises:
            UnsupportedFormatError: If no parser handles the format
        """
        parser_class = cls.get(log_format)
        if parser_class is None:
            raise UnsupportedFormatError(log_format, cls.supported_formats())
        return parser_class(sink=sink)

    @classmethod
    def supported_formats(cls) -> list[str]:
        """Get list of supported format tags.

        Returns:
            List of format tags
        """
        return list(cls._parsers.keys())

    @classmethod
    def all(cls) -> dict[str, type[BaseLogParser]]:
        """Get registered parsers keyed by format tag."""
        return dict(cls._parsers)
