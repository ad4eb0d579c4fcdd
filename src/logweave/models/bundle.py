"""Visualization bundle returned by the pattern detectors."""

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from logweave.models.events import (
    DnsQueryEvent,
    FileActivityEvent,
    Identifier,
    NetworkConnectionEvent,
    Severity,
)


class ThreatSummary(BaseModel):
    """Native alert projected into the threat indicator list."""

    threat_name: str | None = None
    description: str | None = None
    process_name: str = "N/A"
    severity: Severity | Identifier | None = None

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }


class MappedFileActivity(FileActivityEvent):
    """File activity with its resolved process attached."""

    process: str = "N/A"


class MappedConnection(NetworkConnectionEvent):
    """Network connection with its resolved process attached."""

    process: str = "N/A"


class MappedDnsQuery(DnsQueryEvent):
    """DNS query with its resolved process attached."""

    process: str = "N/A"


# Rule-derived indicators are human-readable strings; native alerts keep
# their structure.
ThreatIndicator = str | ThreatSummary


class VisualizationBundle(BaseModel):
    """Derived indicators, numbered attack chain and pass-through maps."""

    threat_indicators: list[ThreatIndicator] = Field(default_factory=list)
    attack_chain: list[str] = Field(default_factory=list)
    file_activities: list[MappedFileActivity] = Field(default_factory=list)
    network_connections: list[MappedConnection] = Field(default_factory=list)
    dns_queries: list[MappedDnsQuery] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }

    def is_empty(self) -> bool:
        return not any(
            (
                self.threat_indicators,
                self.attack_chain,
                self.file_activities,
                self.network_connections,
                self.dns_queries,
            )
        )

    def to_visualization(self) -> dict[str, Any]:
        """Nest the bundle the way the dashboard consumes it.

        Returns:
            Dict with ``aptPatterns``, ``fileMap`` and ``networkMap`` sections
        """
        data = self.model_dump(mode="json", by_alias=True)
        return {
            "aptPatterns": {
                "threatIndicators": data["threatIndicators"],
                "attackChain": data["attackChain"],
            },
            "fileMap": {"fileActivities": data["fileActivities"]},
            "networkMap": {
                "connections": data["networkConnections"],
                "dnsQueries": data["dnsQueries"],
            },
        }
