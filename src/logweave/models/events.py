"""Canonical event models shared by all source adapters.

Every adapter maps its native log shape onto these records. Attributes are
snake_case in Python and serialize to camelCase (``processName``,
``destinationIp``) with ``model_dump(by_alias=True)``.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

Severity = Literal["informational", "low", "medium", "high"]

# Source-supplied identifiers keep whatever JSON type the export used.
Identifier = int | str


class CanonicalEvent(BaseModel):
    """Base for all canonical records."""

    timestamp: str = Field(
        ...,
        description="Source timestamp, or the parse time when the source omits it",
    )

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }


class AttributedEvent(CanonicalEvent):
    """Record attributed to an originating process."""

    process_id: Identifier | None = Field(default=None, description="Originating process id")
    image: str | None = Field(default=None, description="Full executable path")
    user: str | None = Field(default=None, description="Account the process ran as")
    process_name: str = Field(
        default="N/A",
        description="Final path segment of image",
    )


class ProcessEvent(AttributedEvent):
    """Process creation."""

    parent_process_id: Identifier | None = None
    command_line: str | None = None


class NetworkConnectionEvent(AttributedEvent):
    """Network connection initiated by a process."""

    source_ip: str | None = None
    source_port: Identifier | None = None
    destination_ip: str = Field(..., min_length=1)
    destination_port: Identifier | None = None
    protocol: str | None = None


class FileActivityEvent(AttributedEvent):
    """File creation, deletion or other activity."""

    file_path: str = Field(..., min_length=1)
    action: str = Field(
        ...,
        description="File Created, File Deleted, File Stream Created, File Activity or a source action",
    )
    activity_type: str | None = None


class DnsQueryEvent(AttributedEvent):
    """DNS lookup performed by a process."""

    query_name: str = Field(..., min_length=1)
    query_results: str | None = None


class RegistryChangeEvent(AttributedEvent):
    """Registry value modification."""

    key: str | None = None
    value_name: str | None = None
    value_data: Any = None


class DllActivityEvent(AttributedEvent):
    """Image (DLL) load."""

    image_loaded: str | None = None
    signed: bool | None = None


class UserActivityEvent(CanonicalEvent):
    """Account activity (logon, logoff, privilege use)."""

    user: str | None = None
    action: str | None = None
    logon_type: Identifier | None = None
    source_ip: str | None = None


class ThreatEvent(CanonicalEvent):
    """Native alert or detection carried by the source."""

    threat_name: str | None = None
    severity: Severity | Identifier | None = Field(
        default=None,
        description="Mapped severity for host-IDS alerts, raw source value for detections",
    )
    description: str | None = None
    process_name: str = "N/A"
    rule: Identifier | None = Field(default=None, description="Source rule identifier")
    file_path: str | None = None
    threat_type: str = Field(..., alias="type")


class CanonicalDataset(BaseModel):
    """Normalized records of one parse run, grouped by category.

    Lists preserve file submission order, then in-file order.
    """

    processes: list[ProcessEvent] = Field(default_factory=list)
    network_connections: list[NetworkConnectionEvent] = Field(default_factory=list)
    file_activities: list[FileActivityEvent] = Field(default_factory=list)
    dll_activities: list[DllActivityEvent] = Field(default_factory=list)
    registry_changes: list[RegistryChangeEvent] = Field(default_factory=list)
    user_activities: list[UserActivityEvent] = Field(default_factory=list)
    threats: list[ThreatEvent] = Field(default_factory=list)
    dns_queries: list[DnsQueryEvent] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }

    def add(self, record: CanonicalEvent) -> None:
        """Append a record to the list of its category.

        Raises:
            TypeError: If the record kind has no category
        """
        category = _CATEGORIES.get(type(record))
        if category is None:
            raise TypeError(f"No dataset category for {type(record).__name__}")
        getattr(self, category).append(record)

    def extend(self, other: "CanonicalDataset") -> None:
        """Append every category of another dataset to this one."""
        for name in type(self).model_fields:
            getattr(self, name).extend(getattr(other, name))

    def record_count(self) -> int:
        """Total number of records across all categories."""
        return sum(len(getattr(self, name)) for name in type(self).model_fields)

    def is_empty(self) -> bool:
        return self.record_count() == 0


_CATEGORIES: dict[type[CanonicalEvent], str] = {
    ProcessEvent: "processes",
    NetworkConnectionEvent: "network_connections",
    FileActivityEvent: "file_activities",
    DllActivityEvent: "dll_activities",
    RegistryChangeEvent: "registry_changes",
    UserActivityEvent: "user_activities",
    ThreatEvent: "threats",
    DnsQueryEvent: "dns_queries",
}
