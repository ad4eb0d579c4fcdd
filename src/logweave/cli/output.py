"""Output formatting for Logweave CLI.

Implements JSON, JSONL, and human-readable output modes.
stdout contains only the bundle (or a structured error).
stderr carries logs and diagnostics.
"""

import json
import sys
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from logweave.models.bundle import VisualizationBundle

OutputFormat = Literal["json", "jsonl", "human"]

_output_format: OutputFormat = "json"

BUNDLE_SECTIONS = (
    ("threatIndicators", "Threat Indicators"),
    ("attackChain", "Attack Chain"),
    ("networkConnections", "Network Connections"),
    ("fileActivities", "File Activities"),
    ("dnsQueries", "DNS Queries"),
)


def set_output_format(format: OutputFormat) -> None:
    """Set the global output format."""
    global _output_format
    _output_format = format


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for Logweave types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json", by_alias=True)
        return super().default(obj)


def output_json(data: Any, file: Any = None) -> None:
    """Output data as JSON to stdout.

    Args:
        data: Data to output (dict, list, or Pydantic model)
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)

    json.dump(data, file, cls=JSONEncoder, ensure_ascii=False)
    file.write("\n")
    file.flush()


def output_bundle_jsonl(bundle: VisualizationBundle, file: Any = None) -> None:
    """Output one JSON line per bundle entry, tagged with its section.

    Args:
        bundle: Bundle to output
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    data = bundle.model_dump(mode="json", by_alias=True)
    for section, _ in BUNDLE_SECTIONS:
        for item in data[section]:
            json.dump({"section": section, "item": item}, file, ensure_ascii=False)
            file.write("\n")
    file.flush()


def output_bundle_human(bundle: VisualizationBundle, file: Any = None) -> None:
    """Output the bundle as titled sections.

    Args:
        bundle: Bundle to output
        file: Output file (defaults to stdout)
    """
    if file is None:
        file = sys.stdout

    data = bundle.model_dump(mode="json", by_alias=True)
    for section, title in BUNDLE_SECTIONS:
        items = data[section]
        heading = f"{title} ({len(items)})"
        file.write(f"\n{heading}\n")
        file.write("=" * len(heading) + "\n")
        if not items:
            file.write("None.\n")
        for item in items:
            if isinstance(item, dict):
                file.write(f"- {_format_entry(item)}\n")
            else:
                file.write(f"- {item}\n")
    file.flush()


def _format_entry(item: dict[str, Any]) -> str:
    """One-line summary of a structured bundle entry."""
    if "threatName" in item:
        return f"[{item.get('severity')}] {item.get('threatName')} (Process: {item.get('processName')})"
    if "destinationIp" in item:
        return (
            f"{item.get('timestamp')} {item.get('process')} -> "
            f"{item.get('destinationIp')}:{item.get('destinationPort')}"
        )
    if "filePath" in item:
        return f"{item.get('timestamp')} {item.get('action')} {item.get('filePath')} ({item.get('process')})"
    if "queryName" in item:
        return f"{item.get('timestamp')} {item.get('queryName')} -> {item.get('queryResults')} ({item.get('process')})"
    return json.dumps(item, ensure_ascii=False)


def output_bundle(
    bundle: VisualizationBundle, format: OutputFormat | None = None, file: Any = None
) -> None:
    """Output a bundle in the specified format.

    Args:
        bundle: Bundle to output
        format: Output format (uses global if not specified)
        file: Output file (defaults to stdout)
    """
    if format is None:
        format = _output_format

    if format == "jsonl":
        output_bundle_jsonl(bundle, file=file)
    elif format == "human":
        output_bundle_human(bundle, file=file)
    else:
        output_json(bundle, file=file)


def output_error(error: Any, file: Any = None) -> None:
    """Output an error to stdout as JSON.

    Errors are output to stdout (not stderr) for programmatic handling.
    """
    if isinstance(error, BaseModel):
        error = error.model_dump(mode="json", exclude_none=True)
    output_json(error, file=file)
