"""Tests for the Sysmon parser and its detection rules."""

import json

from logweave.models.bundle import VisualizationBundle
from logweave.parsers.sysmon import SysmonLogParser


def _run(events, collector) -> VisualizationBundle:
    parser = SysmonLogParser(sink=collector)
    return parser.detect(parser.parse([json.dumps(events)], "sysmon"))


def test_maps_each_event_id(sysmon_events, collector):
    parser = SysmonLogParser(sink=collector)
    dataset = parser.parse([json.dumps(sysmon_events)], "sysmon")

    assert len(dataset.processes) == 1
    process = dataset.processes[0]
    assert process.process_id == 4242
    assert process.parent_process_id == 1000
    assert process.command_line == "cmd.exe /c whoami"
    assert process.process_name == "cmd.exe"
    assert process.timestamp == "2024-03-01 10:00:00.000"

    assert dataset.network_connections[0].destination_port == 443
    assert dataset.file_activities[0].action == "File Created"
    assert dataset.file_activities[0].activity_type == "File Created"
    assert dataset.dns_queries[0].query_name == "evil.example"
    assert dataset.threats == []


def test_file_event_labels():
    parser = SysmonLogParser(sink=lambda d: None)
    events = [
        {"EventID": code, "TargetFilename": f"C:\\f{code}.txt"} for code in (11, 23, 15)
    ]
    dataset = parser.parse([json.dumps(events)], "sysmon")

    assert [a.action for a in dataset.file_activities] == [
        "File Created",
        "File Deleted",
        "File Stream Created",
    ]


def test_unknown_event_ids_are_ignored(collector):
    parser = SysmonLogParser(sink=collector)
    events = [{"EventID": 7, "Image": "C:\\a.exe", "ProcessId": 1}, {"EventID": 4688}]
    assert parser.parse([json.dumps(events)], "sysmon").is_empty()


def test_missing_image_yields_not_available(collector):
    parser = SysmonLogParser(sink=collector)
    events = [{"EventID": 3, "DestinationIp": "8.8.8.8", "DestinationPort": 53}]
    dataset = parser.parse([json.dumps(events)], "sysmon")

    assert dataset.network_connections[0].process_name == "N/A"


def test_missing_timestamp_defaults_to_now(collector):
    parser = SysmonLogParser(sink=collector)
    dataset = parser.parse([json.dumps([{"EventID": 1, "ProcessId": 5}])], "sysmon")

    assert dataset.processes[0].timestamp.endswith("Z")


def test_records_without_discriminant_are_skipped(collector):
    parser = SysmonLogParser(sink=collector)
    events = [
        {"EventID": 1, "Image": "C:\\a.exe"},
        {"EventID": 3, "DestinationIp": ""},
        {"EventID": 11},
        {"EventID": 22},
    ]
    assert parser.parse([json.dumps(events)], "sysmon").is_empty()


def test_string_event_ids_are_accepted(collector):
    parser = SysmonLogParser(sink=collector)
    dataset = parser.parse(
        [json.dumps([{"EventID": "3", "DestinationIp": "8.8.8.8"}])], "sysmon"
    )
    assert len(dataset.network_connections) == 1


def test_c2_connection_starts_the_chain(collector):
    events = [
        {
            "EventID": 3,
            "Image": "C:\\Users\\a\\beacon.exe",
            "SourceIp": "10.0.0.5",
            "DestinationIp": "203.0.113.5",
            "DestinationPort": 8443,
        }
    ]
    bundle = _run(events, collector)

    assert len(bundle.threat_indicators) == 1
    indicator = bundle.threat_indicators[0]
    assert indicator.startswith("Command and Control Connection")
    assert "203.0.113.5" in indicator
    assert bundle.attack_chain[0].startswith("1. Command and Control (C2)")
    assert bundle.attack_chain[0].endswith("203.0.113.5:8443 from beacon.exe")


def test_internal_smb_is_lateral_movement(collector):
    events = [
        {"EventID": 3, "SourceIp": "10.0.0.5", "DestinationIp": "10.0.0.9", "DestinationPort": 445},
        {"EventID": 3, "SourceIp": "10.0.0.5", "DestinationIp": "10.0.0.9", "DestinationPort": 443},
    ]
    bundle = _run(events, collector)

    assert bundle.threat_indicators == [
        "Lateral Movement - SMB: Internal SMB connection: 10.0.0.5 -> 10.0.0.9 (Process: N/A)"
    ]
    assert bundle.attack_chain == [
        "1. Lateral Movement: Internal SMB connection from 10.0.0.5 to 10.0.0.9"
    ]
    assert len(bundle.network_connections) == 2


def test_external_smb_is_c2_not_lateral_movement(collector):
    events = [{"EventID": 3, "DestinationIp": "198.51.100.7", "DestinationPort": 445}]
    bundle = _run(events, collector)

    assert bundle.attack_chain[0].startswith("1. Command and Control (C2)")
    assert not any("Lateral" in i for i in bundle.threat_indicators)


def test_evidence_tampering_numbered_after_earlier_steps(collector):
    events = [
        {"EventID": 3, "DestinationIp": "203.0.113.5", "DestinationPort": 443},
        {"EventID": 23, "TargetFilename": "C:\\Users\\a\\evidence.log", "User": "a"},
    ]
    bundle = _run(events, collector)

    assert any(i.startswith("Evidence Tampering") for i in bundle.threat_indicators)
    assert bundle.attack_chain == [
        "1. Command and Control (C2): Suspicious network connection to 203.0.113.5:443 from N/A",
        "2. Evidence Tampering: File C:\\Users\\a\\evidence.log deleted",
    ]


def test_evidence_tampering_alone(collector):
    events = [{"EventID": 23, "TargetFilename": "C:\\Users\\a\\evidence.log"}]
    bundle = _run(events, collector)

    assert bundle.threat_indicators == [
        "Evidence Tampering: File Deleted: C:\\Users\\a\\evidence.log (Process: N/A) (User: None)"
    ]
    assert bundle.attack_chain == ["1. Evidence Tampering: File C:\\Users\\a\\evidence.log deleted"]


def test_temp_file_creation_is_staging(sysmon_events, collector):
    bundle = _run(sysmon_events, collector)

    staging = [i for i in bundle.threat_indicators if i.startswith("Exfiltration Staging")]
    assert len(staging) == 1
    assert "(User: CORP\\alice)" in staging[0]
    assert bundle.attack_chain[1] == (
        "2. Exfiltration: Data staged for exfiltration via "
        "C:\\Users\\alice\\AppData\\Local\\Temp\\loot.zip"
    )


def test_staging_match_is_case_sensitive(collector):
    events = [{"EventID": 11, "TargetFilename": "C:\\temp\\a.zip"}]
    assert _run(events, collector).threat_indicators == []


def test_pass_through_maps_attach_process(sysmon_events, collector):
    bundle = _run(sysmon_events, collector)

    assert bundle.network_connections[0].process == "cmd.exe"
    assert bundle.file_activities[0].process == "cmd.exe"
    assert bundle.dns_queries[0].process == "cmd.exe"
    assert bundle.model_dump(by_alias=True)["dnsQueries"][0]["queryName"] == "evil.example"


def test_rerun_is_idempotent(sysmon_events, collector):
    parser = SysmonLogParser(sink=collector)
    content = [json.dumps(sysmon_events)]

    first = parser.detect(parser.parse(content, "sysmon"))
    second = parser.detect(parser.parse(content, "sysmon"))

    assert first == second
    assert second.attack_chain[0].startswith("1. ")


def test_non_array_content_is_skipped(collector):
    parser = SysmonLogParser(sink=collector)
    dataset = parser.parse([json.dumps({"EventID": 1, "ProcessId": 4}), "not json"], "sysmon")

    assert dataset.is_empty()
    codes = [d.code for d in collector.by_level("error")]
    assert codes == ["INVALID_FORMAT", "PARSE_ERROR"]


def test_unsupported_format_returns_empty_dataset(sysmon_events, collector):
    parser = SysmonLogParser(sink=collector)
    dataset = parser.parse([json.dumps(sysmon_events)], "wazuh")

    assert dataset.is_empty()
    assert parser.detect(dataset).is_empty()
    warnings = collector.by_level("warning")
    assert len(warnings) == 1
    assert warnings[0].code == "UNSUPPORTED_FORMAT"
    assert "unsupported format: wazuh" in warnings[0].message


def test_smb_port_given_as_text_is_lateral_movement(collector):
    events = [
        {"EventID": 3, "SourceIp": "10.0.0.5", "DestinationIp": "10.0.0.9", "DestinationPort": "445"}
    ]
    bundle = _run(events, collector)

    assert bundle.attack_chain == [
        "1. Lateral Movement: Internal SMB connection from 10.0.0.5 to 10.0.0.9"
    ]


def test_deeply_nested_content_is_a_parse_error(collector):
    parser = SysmonLogParser(sink=collector)
    nested = "[" * 100000 + "]" * 100000
    good = json.dumps([{"EventID": 23, "TargetFilename": "C:\\e.log"}])

    dataset = parser.parse([nested, good], "sysmon")

    assert len(dataset.file_activities) == 1
    assert [d.code for d in collector.by_level("error")] == ["PARSE_ERROR"]
