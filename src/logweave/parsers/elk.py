"""Elasticsearch/Kibana export parser.

Elastic exports mix schemas: raw Sysmon field names, ECS nested objects and
Defender columns all appear. Each canonical attribute is resolved through an
ordered list of field paths, and an event is placed in every category whose
discriminant it carries.

Accepted file shapes:
- A JSON array of events, or a single JSON object
- Line-delimited JSON (one event per line)

Search hits wrapped in ``_source`` are unwrapped.
"""

import json
from typing import Any

from logweave.core.errors import MalformedInputError
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
    FieldPath,
    as_identifier,
    as_int,
    as_text,
    derive_process_name,
    extract,
    first_present,
    get_path,
    utc_now_iso,
)
from logweave.normalizer.ipclass import is_internal_ip
from logweave.parsers.base import BaseLogParser, ParserRegistry

PARSER_VERSION = "0.1.0"

TIMESTAMP_FIELDS: tuple[FieldPath, ...] = (("@timestamp",), ("UtcTime",))

# Process records: Sysmon name, then ECS, then Defender column.
PROCESS_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "image": (("Image",), ("process", "executable"), ("InitiatingProcessFileName",)),
    "process_id": (("ProcessId",), ("process", "pid"), ("InitiatingProcessId",)),
    "parent_process_id": (
        ("ParentProcessId",),
        ("process", "parent", "pid"),
        ("InitiatingProcessParentId",),
    ),
    "command_line": (
        ("CommandLine",),
        ("process", "command_line"),
        ("InitiatingProcessCommandLine",),
    ),
    "user": (("User",), ("user", "name"), ("UserName",)),
}

# Attribution of network, file and DNS records: Sysmon name, then ECS.
ACTIVITY_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "image": (("Image",), ("process", "executable")),
    "process_id": (("ProcessId",), ("process", "pid")),
    "user": (("User",), ("user", "name")),
}

NETWORK_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "destination_ip": (("DestinationIp",), ("destination", "ip")),
    "source_ip": (("SourceIp",), ("source", "ip")),
    "source_port": (("SourcePort",), ("source", "port")),
    "destination_port": (("DestinationPort",), ("destination", "port")),
    "protocol": (("Protocol",), ("network", "protocol")),
}

FILE_PATH_FIELDS: tuple[FieldPath, ...] = (("TargetFilename",), ("file", "path"))

DNS_QUERY_FIELDS: tuple[FieldPath, ...] = (("QueryName",), ("dns", "question", "name"))

FILE_EVENT_ACTIONS = {
    11: "File Created",
    23: "File Deleted",
}

DEFAULT_FILE_ACTION = "File Activity"


@ParserRegistry.register
class ElkLogParser(BaseLogParser):
    """Parser for ELK JSON and NDJSON exports."""

    name = "elk"
    version = PARSER_VERSION
    description = "ELK logs"

    def load_events(self, content: str, source: str) -> list[Any]:
        """Decode a whole-document export, falling back to NDJSON.

        Raises:
            MalformedInputError: Neither shape parses
        """
        try:
            events = json.loads(content)
        except (json.JSONDecodeError, RecursionError):
            pass
        else:
            return events if isinstance(events, list) else [events]

        try:
            return [json.loads(line) for line in content.strip().splitlines() if line.strip()]
        except (json.JSONDecodeError, RecursionError) as e:
            raise MalformedInputError(
                f"Error parsing {self.description} content as JSON or line-delimited JSON: {e}",
                source=source,
                content=content,
            ) from e

    def map_event(self, event: dict[str, Any]) -> list[CanonicalEvent]:
        hit = event.get("_source")
        if isinstance(hit, dict):
            event = hit

        timestamp = as_text(first_present(event, TIMESTAMP_FIELDS)) or utc_now_iso()
        activity = self._activity_attribution(event)
        records: list[CanonicalEvent | None] = [
            self._process(event, timestamp),
            self._network_connection(event, timestamp, activity),
            self._file_activity(event, timestamp, activity),
            self._dns_query(event, timestamp, activity),
        ]
        return [record for record in records if record is not None]

    def _activity_attribution(self, event: dict[str, Any]) -> dict[str, Any]:
        fields = extract(event, ACTIVITY_FIELDS)
        image = as_text(fields["image"])
        return {
            "process_id": as_identifier(fields["process_id"]),
            "image": image,
            "user": as_text(fields["user"]),
            "process_name": derive_process_name(image),
        }

    def _process(self, event: dict[str, Any], timestamp: str) -> ProcessEvent | None:
        fields = extract(event, PROCESS_FIELDS)
        image = as_text(fields["image"])
        if not image or fields["process_id"] is None:
            return None
        return ProcessEvent(
            timestamp=timestamp,
            process_id=as_identifier(fields["process_id"]),
            parent_process_id=as_identifier(fields["parent_process_id"]),
            image=image,
            command_line=as_text(fields["command_line"]),
            user=as_text(fields["user"]),
            process_name=derive_process_name(image),
        )

    def _network_connection(
        self, event: dict[str, Any], timestamp: str, activity: dict[str, Any]
    ) -> NetworkConnectionEvent | None:
        fields = extract(event, NETWORK_FIELDS)
        destination_ip = as_text(fields["destination_ip"])
        if not destination_ip:
            return None
        return NetworkConnectionEvent(
            timestamp=timestamp,
            source_ip=as_text(fields["source_ip"]),
            source_port=as_identifier(fields["source_port"]),
            destination_ip=destination_ip,
            destination_port=as_identifier(fields["destination_port"]),
            protocol=as_text(fields["protocol"]),
            **activity,
        )

    def _file_activity(
        self, event: dict[str, Any], timestamp: str, activity: dict[str, Any]
    ) -> FileActivityEvent | None:
        file_path = as_text(first_present(event, FILE_PATH_FIELDS))
        if not file_path:
            return None
        action = self._file_action(event)
        return FileActivityEvent(
            timestamp=timestamp,
            file_path=file_path,
            action=action,
            activity_type=action,
            **activity,
        )

    @staticmethod
    def _file_action(event: dict[str, Any]) -> str:
        """Label from the Sysmon event code, else the ECS action."""
        event_id = as_int(event.get("EventID"))
        if event_id in FILE_EVENT_ACTIONS:
            return FILE_EVENT_ACTIONS[event_id]
        return as_text(get_path(event, ("event", "action"))) or DEFAULT_FILE_ACTION

    def _dns_query(
        self, event: dict[str, Any], timestamp: str, activity: dict[str, Any]
    ) -> DnsQueryEvent | None:
        query_name = as_text(first_present(event, DNS_QUERY_FIELDS))
        if not query_name:
            return None
        return DnsQueryEvent(
            timestamp=timestamp,
            query_name=query_name,
            query_results=self._dns_answers(event),
            **activity,
        )

    @staticmethod
    def _dns_answers(event: dict[str, Any]) -> str:
        results = as_text(event.get("QueryResults"))
        if results:
            return results
        answers = get_path(event, ("dns", "answers"))
        if isinstance(answers, list):
            data = (answer.get("data") if isinstance(answer, dict) else None for answer in answers)
            return ", ".join(as_text(value) or "" for value in data)
        return NOT_AVAILABLE

    def detect(self, dataset: CanonicalDataset) -> VisualizationBundle:
        """Apply the C2 rule; file and DNS records pass through."""
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

        bundle.file_activities = [map_file_activity(a) for a in dataset.file_activities]
        bundle.dns_queries = [map_dns_query(query) for query in dataset.dns_queries]
        bundle.attack_chain = chain.to_list()
        return bundle
