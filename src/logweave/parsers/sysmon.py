"""Sysmon export parser.

Parses a JSON array of Sysmon events and dispatches on ``EventID``:

- 1: Process creation
- 3: Network connection
- 11, 23, 15: File created / deleted / alternate data stream created
- 22: DNS query

Any other event ID is ignored.
"""

from typing import Any

from logweave.detection.chain import AttackChain
from logweave.detection.projection import map_connection, map_dns_query, map_file_activity
from logweave.models.bundle import VisualizationBundle
from logweave.models.events import (
    CanonicalDataset,
    CanonicalEvent,
    DnsQueryEvent,
    FileActivityEvent,
    NetworkConnectionEvent,
    ProcessEvent,
)
from logweave.normalizer.fields import (
    NOT_AVAILABLE,
    as_identifier,
    as_int,
    as_text,
    derive_process_name,
    is_present,
    utc_now_iso,
)
from logweave.normalizer.ipclass import is_internal_ip
from logweave.parsers.base import BaseLogParser, ParserRegistry

PARSER_VERSION = "0.1.0"

EVENT_PROCESS_CREATE = 1
EVENT_NETWORK_CONNECT = 3
EVENT_DNS_QUERY = 22

FILE_EVENT_ACTIONS = {
    11: "File Created",
    23: "File Deleted",
    15: "File Stream Created",
}

SMB_PORT = 445


@ParserRegistry.register
class SysmonLogParser(BaseLogParser):
    """Parser for Sysmon JSON exports."""

    name = "sysmon"
    version = PARSER_VERSION
    description = "Sysmon logs"

    def map_event(self, event: dict[str, Any]) -> list[CanonicalEvent]:
        event_id = as_int(event.get("EventID"))

        if event_id == EVENT_PROCESS_CREATE:
            record = self._process_creation(event)
        elif event_id == EVENT_NETWORK_CONNECT:
            record = self._network_connection(event)
        elif event_id in FILE_EVENT_ACTIONS:
            record = self._file_activity(event, FILE_EVENT_ACTIONS[event_id])
        elif event_id == EVENT_DNS_QUERY:
            record = self._dns_query(event)
        else:
            record = None

        return [record] if record is not None else []

    def _attribution(self, event: dict[str, Any]) -> dict[str, Any]:
        """Timestamp and process attribution common to every event ID."""
        image = as_text(event.get("Image"))
        return {
            "timestamp": as_text(event.get("UtcTime")) or utc_now_iso(),
            "process_id": as_identifier(event.get("ProcessId")),
            "image": image,
            "user": as_text(event.get("User")),
            "process_name": derive_process_name(image),
        }

    def _process_creation(self, event: dict[str, Any]) -> ProcessEvent | None:
        if not is_present(event.get("ProcessId")):
            return None
        return ProcessEvent(
            **self._attribution(event),
            parent_process_id=as_identifier(event.get("ParentProcessId")),
            command_line=as_text(event.get("CommandLine")),
        )

    def _network_connection(self, event: dict[str, Any]) -> NetworkConnectionEvent | None:
        destination_ip = as_text(event.get("DestinationIp"))
        if not destination_ip:
            return None
        return NetworkConnectionEvent(
            **self._attribution(event),
            source_ip=as_text(event.get("SourceIp")),
            source_port=as_identifier(event.get("SourcePort")),
            destination_ip=destination_ip,
            destination_port=as_identifier(event.get("DestinationPort")),
            protocol=as_text(event.get("Protocol")),
        )

    def _file_activity(self, event: dict[str, Any], action: str) -> FileActivityEvent | None:
        file_path = as_text(event.get("TargetFilename"))
        if not file_path:
            return None
        return FileActivityEvent(
            **self._attribution(event),
            file_path=file_path,
            action=action,
            activity_type=action,
        )

    def _dns_query(self, event: dict[str, Any]) -> DnsQueryEvent | None:
        query_name = as_text(event.get("QueryName"))
        if not query_name:
            return None
        return DnsQueryEvent(
            **self._attribution(event),
            query_name=query_name,
            query_results=as_text(event.get("QueryResults")),
        )

    def detect(self, dataset: CanonicalDataset) -> VisualizationBundle:
        """Apply C2, SMB lateral movement, staging and tampering rules.

        The SMB port is compared as a number, so exports that carry
        ``DestinationPort`` as the string ``"445"`` also match.
        """
        bundle = VisualizationBundle()
        chain = AttackChain()

        for conn in dataset.network_connections:
            process = conn.process_name or NOT_AVAILABLE
            target = f"{conn.destination_ip}:{conn.destination_port}"
            if not is_internal_ip(conn.destination_ip):
                bundle.threat_indicators.append(
                    f"Command and Control Connection: Outbound connection to C2 IP: "
                    f"{target} (Process: {process})"
                )
                chain = chain.add(
                    f"Command and Control (C2): Suspicious network connection to "
                    f"{target} from {process}"
                )
            elif as_int(conn.destination_port) == SMB_PORT:
                bundle.threat_indicators.append(
                    f"Lateral Movement - SMB: Internal SMB connection: "
                    f"{conn.source_ip} -> {conn.destination_ip} (Process: {process})"
                )
                chain = chain.add(
                    f"Lateral Movement: Internal SMB connection from "
                    f"{conn.source_ip} to {conn.destination_ip}"
                )
            bundle.network_connections.append(map_connection(conn))

        for activity in dataset.file_activities:
            process = activity.process_name or NOT_AVAILABLE
            if activity.action == "File Created" and "Temp" in activity.file_path:
                bundle.threat_indicators.append(
                    f"Exfiltration Staging: File created in temp for potential exfiltration: "
                    f"{activity.file_path} (Process: {process}) (User: {activity.user})"
                )
                chain = chain.add(
                    f"Exfiltration: Data staged for exfiltration via {activity.file_path}"
                )
            elif activity.action == "File Deleted":
                bundle.threat_indicators.append(
                    f"Evidence Tampering: File Deleted: {activity.file_path} "
                    f"(Process: {process}) (User: {activity.user})"
                )
                chain = chain.add(f"Evidence Tampering: File {activity.file_path} deleted")
            bundle.file_activities.append(map_file_activity(activity))

        bundle.dns_queries = [map_dns_query(query) for query in dataset.dns_queries]
        bundle.attack_chain = chain.to_list()
        return bundle
