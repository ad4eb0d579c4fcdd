"""Shared building blocks for the per-source pattern detectors.

The detection rules themselves live with each source adapter.
"""

from logweave.detection.chain import AttackChain
from logweave.detection.projection import (
    map_connection,
    map_dns_query,
    map_file_activity,
    summarize_threat,
)

__all__ = [
    "AttackChain",
    "map_connection",
    "map_dns_query",
    "map_file_activity",
    "summarize_threat",
]
