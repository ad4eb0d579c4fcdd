"""Wazuh alert export parser.

Parses a JSON array of Wazuh alerts. Every alert carrying a rule id and
description becomes a threat; file integrity monitoring sub-events
(``data.audit.event`` with ``file`` and ``action``) become file activities.
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
    FileActivityEvent,
    Severity,
    ThreatEvent,
)
from logweave.normalizer.fields import (
    NOT_AVAILABLE,
    as_identifier,
    as_text,
    derive_process_name,
    get_path,
    is_present,
    utc_now_iso,
)
from logweave.parsers.base import BaseLogParser, ParserRegistry

PARSER_VERSION = "0.1.0"

AUDIT_EVENT_PATH = ("data", "audit", "event")

FIM_ACTIVITY_PREFIX = "wazuh-fim-"

# (minimum rule level, severity), highest first
LEVEL_THRESHOLDS: tuple[tuple[float, Severity], ...] = (
    (12, "high"),
    (7, "medium"),
    (3, "low"),
)


def map_rule_level(level: Any) -> Severity:
    """Map a Wazuh rule level to a severity.

    An absent (or zero) level maps to ``low`` while a present level below 3
    maps to ``informational``.

    Args:
        level: Rule level as supplied (int, numeric string or missing)

    Returns:
        Severity label
    """
    if not level:
        return "low"
    try:
        numeric = float(level)
    except (TypeError, ValueError):
        return "informational"
    for minimum, severity in LEVEL_THRESHOLDS:
        if numeric >= minimum:
            return severity
    return "informational"


@ParserRegistry.register
class WazuhLogParser(BaseLogParser):
    """Parser for Wazuh JSON alert exports."""

    name = "wazuh"
    version = PARSER_VERSION
    description = "Wazuh logs"

    def map_event(self, event: dict[str, Any]) -> list[CanonicalEvent]:
        timestamp = as_text(event.get("timestamp")) or utc_now_iso()
        records: list[CanonicalEvent] = []

        threat = self._rule_alert(event, timestamp)
        if threat is not None:
            records.append(threat)

        activity = self._fim_event(event, timestamp)
        if activity is not None:
            records.append(activity)

        return records

    def _rule_alert(self, event: dict[str, Any], timestamp: str) -> ThreatEvent | None:
        rule = event.get("rule")
        if not isinstance(rule, dict):
            return None
        rule_id = rule.get("id")
        rule_description = as_text(rule.get("description"))
        if not rule_id or not rule_description:
            return None

        process_name = get_path(event, (*AUDIT_EVENT_PATH, "process", "name"))
        if is_present(process_name):
            process_name = derive_process_name(as_text(process_name))
        else:
            process_name = as_text(get_path(event, ("data", "command"))) or NOT_AVAILABLE

        return ThreatEvent(
            timestamp=timestamp,
            threat_name=rule_description,
            rule=as_identifier(rule_id),
            severity=map_rule_level(rule.get("level")),
            description=as_text(event.get("full_log")) or rule_description,
            process_name=process_name,
            threat_type="wazuh_alert",
        )

    def _fim_event(self, event: dict[str, Any], timestamp: str) -> FileActivityEvent | None:
        audit_event = get_path(event, AUDIT_EVENT_PATH)
        if not isinstance(audit_event, dict):
            return None
        file_path = as_text(audit_event.get("file"))
        action = as_text(audit_event.get("action"))
        if not file_path or not action:
            return None

        image = as_text(get_path(audit_event, ("process", "name")))
        return FileActivityEvent(
            timestamp=timestamp,
            file_path=file_path,
            action=action,
            activity_type=f"{FIM_ACTIVITY_PREFIX}{action}",
            process_id=as_identifier(get_path(audit_event, ("process", "pid"))),
            image=image,
            user=as_text(audit_event.get("user")),
            process_name=derive_process_name(image),
        )

    def detect(self, dataset: CanonicalDataset) -> VisualizationBundle:
        """Project every alert into the indicators and the attack chain.

        No heuristic rules run for this source; alerts are already findings.
        """
        bundle = VisualizationBundle()
        chain = AttackChain()

        for threat in dataset.threats:
            bundle.threat_indicators.append(summarize_threat(threat))
            chain = chain.add(f"{threat.threat_name}: {threat.description}")

        bundle.file_activities = [map_file_activity(a) for a in dataset.file_activities]
        bundle.network_connections = [map_connection(c) for c in dataset.network_connections]
        bundle.dns_queries = [map_dns_query(query) for query in dataset.dns_queries]
        bundle.attack_chain = chain.to_list()
        return bundle
