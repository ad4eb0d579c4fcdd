"""Pydantic models for Logweave."""

from logweave.models.bundle import ThreatSummary, VisualizationBundle
from logweave.models.error import Diagnostic, StructuredError
from logweave.models.events import (
    CanonicalDataset,
    DnsQueryEvent,
    FileActivityEvent,
    NetworkConnectionEvent,
    ProcessEvent,
    RegistryChangeEvent,
    ThreatEvent,
)

__all__ = [
    "CanonicalDataset",
    "Diagnostic",
    "DnsQueryEvent",
    "FileActivityEvent",
    "NetworkConnectionEvent",
    "ProcessEvent",
    "RegistryChangeEvent",
    "StructuredError",
    "ThreatEvent",
    "ThreatSummary",
    "VisualizationBundle",
]
