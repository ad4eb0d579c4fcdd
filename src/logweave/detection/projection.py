"""Pass-through projections from canonical records to bundle entries."""

from logweave.models.bundle import (
    MappedConnection,
    MappedDnsQuery,
    MappedFileActivity,
    ThreatSummary,
)
from logweave.models.events import (
    DnsQueryEvent,
    FileActivityEvent,
    NetworkConnectionEvent,
    ThreatEvent,
)
from logweave.normalizer.fields import NOT_AVAILABLE


def _process(process_name: str | None) -> str:
    return process_name or NOT_AVAILABLE


def map_connection(conn: NetworkConnectionEvent) -> MappedConnection:
    return MappedConnection(**dict(conn), process=_process(conn.process_name))


def map_file_activity(activity: FileActivityEvent) -> MappedFileActivity:
    return MappedFileActivity(**dict(activity), process=_process(activity.process_name))


def map_dns_query(query: DnsQueryEvent) -> MappedDnsQuery:
    # DNS entries carry the record's process name as-is.
    return MappedDnsQuery(**dict(query), process=query.process_name)


def summarize_threat(threat: ThreatEvent) -> ThreatSummary:
    """Project a native alert into the threat indicator list."""
    return ThreatSummary(
        threat_name=threat.threat_name,
        description=threat.description,
        process_name=threat.process_name,
        severity=threat.severity,
    )
