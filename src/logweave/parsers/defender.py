"""Microsoft Defender for Endpoint export parser.

Parses a JSON array of advanced-hunting style events and dispatches on the
``EventType`` string. Process attribution comes from the
``InitiatingProcess*`` columns.
"""

from typing import Any

from logweave.detection.chain import AttackChain
from logweave.detection.projection import (
    map_connection,
    map_dns_query,
    map_file_activity,
    summarize_threat,
)
from logweave.models.bundle import VisualizationBundle
from logweave.models.events import (
    CanonicalDataset,
    CanonicalEvent,
    DnsQueryEvent,
    FileActivityEvent,
    NetworkConnectionEvent,
    ProcessEvent,
    RegistryChangeEvent,
    ThreatEvent,
)
from logweave.normalizer.fields import (
    NOT_AVAILABLE,
    as_identifier,
    as_text,
    derive_process_name,
    first_present,
    is_present,
    utc_now_iso,
)
from logweave.normalizer.ipclass import is_internal_ip
from logweave.parsers.base import BaseLogParser, ParserRegistry

PARSER_VERSION = "0.1.0"

FILE_EVENT_ACTIONS = {
    "FileCreated": "File Created",
    "FileDeleted": "File Deleted",
}

FILE_PATH_FIELDS = (("FileName",), ("FolderPath",))


@ParserRegistry.register
class DefenderLogParser(BaseLogParser):
    """Parser for Defender JSON exports."""

    name = "defender"
    version = PARSER_VERSION
    description = "Defender logs"

    def map_event(self, event: dict[str, Any]) -> list[CanonicalEvent]:
        event_type = event.get("EventType")

        if event_type == "ProcessCreated":
            record = self._process_created(event)
        elif event_type == "NetworkConnection":
            record = self._network_connection(event)
        elif event_type in FILE_EVENT_ACTIONS:
            record = self._file_event(event, event_type)
        elif event_type == "DnsQuery":
            record = self._dns_query(event)
        elif event_type == "Detection":
            record = self._detection(event)
        elif event_type == "RegistryValueSet":
            record = self._registry_value_set(event)
        else:
            record = None

        return [record] if record is not None else []

    def _attribution(self, event: dict[str, Any]) -> dict[str, Any]:
        image = as_text(event.get("InitiatingProcessFileName"))
        return {
            "timestamp": as_text(event.get("TimeGenerated")) or utc_now_iso(),
            "process_id": as_identifier(event.get("InitiatingProcessId")),
            "image": image,
            "user": as_text(event.get("UserName")) or NOT_AVAILABLE,
            "process_name": derive_process_name(image),
        }

    def _process_created(self, event: dict[str, Any]) -> ProcessEvent | None:
        if not is_present(event.get("InitiatingProcessId")):
            return None
        return ProcessEvent(
            **self._attribution(event),
            parent_process_id=as_identifier(event.get("InitiatingProcessParentId")),
            command_line=as_text(event.get("InitiatingProcessCommandLine")),
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

    def _file_event(self, event: dict[str, Any], event_type: str) -> FileActivityEvent | None:
        file_path = as_text(first_present(event, FILE_PATH_FIELDS))
        if not file_path:
            return None
        return FileActivityEvent(
            **self._attribution(event),
            file_path=file_path,
            action=FILE_EVENT_ACTIONS[event_type],
            activity_type=event_type,
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

    def _detection(self, event: dict[str, Any]) -> ThreatEvent:
        attribution = self._attribution(event)
        threat_name = as_text(event.get("ThreatName"))
        return ThreatEvent(
            timestamp=attribution["timestamp"],
            threat_name=threat_name,
            severity=as_identifier(event.get("Severity")),
            description=threat_name,
            process_name=attribution["process_name"],
            file_path=as_text(first_present(event, FILE_PATH_FIELDS)),
            threat_type="defender_detection",
        )

    def _registry_value_set(self, event: dict[str, Any]) -> RegistryChangeEvent:
        return RegistryChangeEvent(
            **self._attribution(event),
            key=as_text(event.get("RegistryKey")),
            value_name=as_text(event.get("RegistryValueName")),
            value_data=event.get("RegistryValueData"),
        )

    def detect(self, dataset: CanonicalDataset) -> VisualizationBundle:
        """Apply C2 and staging rules, then append native detections.

        Detections become threat indicators but add no attack-chain entry.
        """
        bundle = VisualizationBundle()
        chain = AttackChain()

        for conn in dataset.network_connections:
            process = conn.process_name or NOT_AVAILABLE
            if not is_internal_ip(conn.destination_ip):
                target = f"{conn.destination_ip}:{conn.destination_port}"
                bundle.threat_indicators.append(
                    f"Command and Control Connection: Outbound connection to C2 IP: "
                    f"{target} (Process: {process})"
                )
                chain = chain.add(
                    f"Command and Control (C2): Suspicious network connection to "
                    f"{target} from {process}"
                )
            bundle.network_connections.append(map_connection(conn))

        for activity in dataset.file_activities:
            process = activity.process_name or NOT_AVAILABLE
            if activity.action == "File Created" and "Temp" in activity.file_path:
                bundle.threat_indicators.append(
                    f"Exfiltration Staging: File created in temp: "
                    f"{activity.file_path} (Process: {process})"
                )
                chain = chain.add(f"Exfiltration: Data staged in {activity.file_path}")
            bundle.file_activities.append(map_file_activity(activity))

        bundle.threat_indicators.extend(summarize_threat(t) for t in dataset.threats)
        bundle.dns_queries = [map_dns_query(query) for query in dataset.dns_queries]
        bundle.attack_chain = chain.to_list()
        return bundle
