"""Internal/external address classification.

Only IPv4 private ranges and the two loopback literals count as internal.
IPv6 unique-local and link-local ranges are not recognized.
"""

import re

LOOPBACK_LITERALS = frozenset({"127.0.0.1", "::1"})

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _octet(part: str) -> int | None:
    """Leading integer of a dotted-quad part, or None when there is none."""
    match = _LEADING_INT.match(part)
    return int(match.group(1)) if match else None


def is_internal_ip(address: str | None) -> bool:
    """Check whether an address is private or loopback.

    Args:
        address: IP address string (may be empty or None)

    Returns:
        True for loopback literals and RFC 1918 IPv4 ranges, False otherwise
        (including empty input, which is treated as unknown/external)
    """
    if not address:
        return False
    if address in LOOPBACK_LITERALS:
        return True

    parts = address.split(".")
    if len(parts) != 4:
        return False

    first, second = _octet(parts[0]), _octet(parts[1])
    if first == 10:
        return True
    if first == 172 and second is not None and 16 <= second <= 31:
        return True
    if first == 192 and second == 168:
        return True
    return False
