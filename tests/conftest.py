"""Shared fixtures for Logweave tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from logweave.core.logging import DiagnosticCollector


@pytest.fixture
def collector() -> DiagnosticCollector:
    return DiagnosticCollector()


@pytest.fixture
def write_export(tmp_path: Path):
    """Write an export file and return its path.

    Lists and dicts are written as JSON; strings are written verbatim.
    """

    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sysmon_events() -> list[dict[str, Any]]:
    return [
        {
            "EventID": 1,
            "UtcTime": "2024-03-01 10:00:00.000",
            "ProcessId": 4242,
            "ParentProcessId": 1000,
            "Image": "C:\\Windows\\System32\\cmd.exe",
            "CommandLine": "cmd.exe /c whoami",
            "User": "CORP\\alice",
        },
        {
            "EventID": 3,
            "UtcTime": "2024-03-01 10:00:01.000",
            "ProcessId": 4242,
            "Image": "C:\\Windows\\System32\\cmd.exe",
            "User": "CORP\\alice",
            "SourceIp": "10.0.0.5",
            "SourcePort": 50123,
            "DestinationIp": "203.0.113.5",
            "DestinationPort": 443,
            "Protocol": "tcp",
        },
        {
            "EventID": 11,
            "UtcTime": "2024-03-01 10:00:02.000",
            "ProcessId": 4242,
            "Image": "C:\\Windows\\System32\\cmd.exe",
            "User": "CORP\\alice",
            "TargetFilename": "C:\\Users\\alice\\AppData\\Local\\Temp\\loot.zip",
        },
        {
            "EventID": 22,
            "UtcTime": "2024-03-01 10:00:03.000",
            "ProcessId": 4242,
            "Image": "C:\\Windows\\System32\\cmd.exe",
            "QueryName": "evil.example",
            "QueryResults": "203.0.113.5",
        },
    ]
