"""Tests for the asynchronous batch entry points."""

import asyncio
import io
import json

from logweave.parsers import ParserRegistry, analyze
from logweave.parsers.defender import DefenderLogParser
from logweave.parsers.sysmon import SysmonLogParser


def test_registry_knows_all_formats():
    assert sorted(ParserRegistry.supported_formats()) == ["defender", "elk", "sysmon", "wazuh"]
    assert ParserRegistry.get("sysmon") is SysmonLogParser
    assert ParserRegistry.get("splunk") is None


def test_parse_logs_reads_files_in_order(write_export, collector):
    first = write_export(
        "a.json", [{"EventID": 3, "UtcTime": "t1", "DestinationIp": "203.0.113.1"}]
    )
    second = write_export(
        "b.json", [{"EventID": 3, "UtcTime": "t2", "DestinationIp": "203.0.113.2"}]
    )
    parser = SysmonLogParser(sink=collector)

    bundle = asyncio.run(parser.parse_logs([first, second], "sysmon"))

    assert [c.destination_ip for c in bundle.network_connections] == [
        "203.0.113.1",
        "203.0.113.2",
    ]
    assert [entry[:2] for entry in bundle.attack_chain] == ["1.", "2."]
    info = collector.by_level("info")[0]
    assert info.message == "Parsing 2 files in sysmon format using SysmonLogParser"
    assert info.context["file_count"] == 2


def test_parse_logs_accepts_text_and_binary_handles(collector):
    events = [{"EventType": "Detection", "ThreatName": "EICAR", "Severity": "Low"}]
    text = io.StringIO(json.dumps(events))
    binary = io.BytesIO(b"\xef\xbb\xbf" + json.dumps(events).encode("utf-8"))
    parser = DefenderLogParser(sink=collector)

    bundle = asyncio.run(parser.parse_logs([text, binary], "defender"))

    assert len(bundle.threat_indicators) == 2
    assert bundle.attack_chain == []


def test_unreadable_file_does_not_abort_batch(write_export, tmp_path, collector):
    good = write_export("good.json", [{"EventID": 23, "TargetFilename": "C:\\e.log"}])
    parser = SysmonLogParser(sink=collector)

    bundle = asyncio.run(parser.parse_logs([tmp_path / "missing.json", good], "sysmon"))

    assert bundle.attack_chain == ["1. Evidence Tampering: File C:\\e.log deleted"]
    errors = collector.by_level("error")
    assert len(errors) == 1
    assert errors[0].code == "IO_ERROR"
    assert errors[0].context["path"].endswith("missing.json")


class _UndecodableText(io.StringIO):
    name = "undecodable.json"

    def read(self, *args):
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")


class _EmptyHandle:
    name = "empty-handle"

    def read(self):
        return None


def test_undecodable_or_empty_handles_do_not_abort_batch(write_export, collector):
    good = write_export("good.json", [{"EventID": 23, "TargetFilename": "C:\\e.log"}])
    parser = SysmonLogParser(sink=collector)

    bundle = asyncio.run(
        parser.parse_logs([_UndecodableText(), _EmptyHandle(), good], "sysmon")
    )

    assert bundle.attack_chain == ["1. Evidence Tampering: File C:\\e.log deleted"]
    errors = collector.by_level("error")
    assert [e.code for e in errors] == ["IO_ERROR", "IO_ERROR"]
    assert [e.context["path"] for e in errors] == ["undecodable.json", "empty-handle"]


def test_unparseable_files_yield_empty_bundle(write_export, collector):
    bad = write_export("bad.json", "<xml/>")
    parser = SysmonLogParser(sink=collector)

    bundle = asyncio.run(parser.parse_logs([bad], "sysmon"))

    assert bundle.is_empty()
    assert collector.by_level("error")[0].context["source"].endswith("bad.json")


def test_format_mismatch_skips_reading(tmp_path, collector):
    parser = SysmonLogParser(sink=collector)

    bundle = asyncio.run(parser.parse_logs([tmp_path / "missing.json"], "defender"))

    assert bundle.is_empty()
    assert collector.by_level("error") == []
    assert collector.by_level("warning")[0].code == "UNSUPPORTED_FORMAT"


def test_repeated_runs_start_fresh(write_export, collector):
    path = write_export(
        "c2.json", [{"EventID": 3, "UtcTime": "t", "DestinationIp": "203.0.113.5"}]
    )
    parser = SysmonLogParser(sink=collector)

    first = asyncio.run(parser.parse_logs([path], "sysmon"))
    second = asyncio.run(parser.parse_logs([path], "sysmon"))

    assert first == second
    assert second.attack_chain == [
        "1. Command and Control (C2): Suspicious network connection to 203.0.113.5:None from N/A"
    ]


def test_concurrent_runs_on_one_parser_are_serialized(write_export):
    path = write_export("p.json", [{"EventID": 1, "ProcessId": 1, "UtcTime": "t"}])
    messages: list[str] = []
    parser = SysmonLogParser(sink=lambda d: messages.append(d.message))

    async def _both():
        return await asyncio.gather(
            parser.parse_logs([path], "sysmon"),
            parser.parse_logs([path, path], "sysmon"),
        )

    first, second = asyncio.run(_both())

    assert first.is_empty() and second.is_empty()
    starts = [i for i, m in enumerate(messages) if " format using " in m]
    assert len(starts) == 2
    # The first run parsed its file before the second run started.
    assert any(m.startswith("Parsing Sysmon logs") for m in messages[starts[0] + 1 : starts[1]])
    assert messages[starts[0]].startswith("Parsing 1 files")
    assert messages[starts[1]].startswith("Parsing 2 files")


def test_analyze_selects_parser_by_format(write_export, collector):
    path = write_export(
        "alerts.json", [{"rule": {"id": "1", "description": "Alert", "level": 10}}]
    )

    bundle = asyncio.run(analyze([path], "wazuh", sink=collector))

    assert bundle.attack_chain[0].startswith("1. Alert: Alert")


def test_analyze_unknown_format_returns_empty_bundle(write_export, collector):
    path = write_export("x.json", [])

    bundle = asyncio.run(analyze([path], "splunk", sink=collector))

    assert bundle.is_empty()
    warning = collector.by_level("warning")[0]
    assert warning.code == "UNSUPPORTED_FORMAT"
    assert warning.context["supported"] == ParserRegistry.supported_formats()


def test_parser_can_be_reused_across_event_loops(write_export):
    path = write_export("p.json", [{"EventID": 1, "ProcessId": 1, "UtcTime": "t"}])
    parser = SysmonLogParser(sink=lambda d: None)

    async def _contend():
        return await asyncio.gather(
            parser.parse_logs([path], "sysmon"),
            parser.parse_logs([path], "sysmon"),
        )

    first = asyncio.run(_contend())
    second = asyncio.run(_contend())

    assert first == second
