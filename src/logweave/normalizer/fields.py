"""Field extraction helpers shared by the source adapters.

Canonical attributes that several source fields could satisfy are resolved
through ordered tuples of field paths. The first path yielding a value wins.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

FieldPath = tuple[str, ...]

NOT_AVAILABLE = "N/A"


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_present(value: Any) -> bool:
    """Whether a raw field value counts as supplied."""
    return value is not None and value != ""


def get_path(event: Mapping[str, Any], path: FieldPath) -> Any:
    """Walk nested mappings along a field path.

    Args:
        event: Raw event mapping
        path: Keys to follow, outermost first

    Returns:
        The value at the path, or None if any step is missing
    """
    value: Any = event
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
        if value is None:
            return None
    return value


def first_present(event: Mapping[str, Any], paths: Sequence[FieldPath]) -> Any:
    """Evaluate field paths in order and return the first supplied value."""
    for path in paths:
        value = get_path(event, path)
        if is_present(value):
            return value
    return None


def extract(
    event: Mapping[str, Any], table: Mapping[str, Sequence[FieldPath]]
) -> dict[str, Any]:
    """Resolve every attribute of an extraction table against one event."""
    return {name: first_present(event, paths) for name, paths in table.items()}


def as_text(value: Any) -> str | None:
    """Render a scalar field as text, keeping None as None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def as_identifier(value: Any) -> int | str | None:
    """Keep ints and strings as supplied; render anything else as text."""
    if value is None or isinstance(value, bool):
        return as_text(value)
    if isinstance(value, (int, str)):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return as_text(value)


def as_int(value: Any) -> int | None:
    """Integer value of a numeric field, accepting integer-valued strings.

    Booleans and non-numeric strings yield None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("+-").isdigit():
            return int(text)
    return None


def derive_process_name(image: Any, default: str = NOT_AVAILABLE) -> str:
    """Final path segment of an executable path.

    Both Windows and POSIX separators are honored.

    Args:
        image: Executable path (may be missing)
        default: Value when no path is available

    Returns:
        Process name such as ``cmd.exe`` or ``bash``
    """
    if not is_present(image):
        return default
    return str(image).replace("\\", "/").split("/")[-1]
