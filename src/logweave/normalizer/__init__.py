"""Normalization layer shared by the source adapters.

Provides:
- is_internal_ip: private/loopback address classification
- Field extraction tables and process-name derivation
- aggregate: merges per-file datasets into one session dataset
"""

from logweave.normalizer.aggregator import aggregate
from logweave.normalizer.fields import derive_process_name, first_present
from logweave.normalizer.ipclass import is_internal_ip

__all__ = [
    "aggregate",
    "derive_process_name",
    "first_present",
    "is_internal_ip",
]
