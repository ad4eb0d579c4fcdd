"""Tests for internal address classification."""

import pytest

from logweave.normalizer.ipclass import is_internal_ip


@pytest.mark.parametrize(
    "address",
    [
        "10.0.0.1",
        "10.255.255.255",
        "172.16.0.5",
        "172.31.255.1",
        "192.168.1.1",
        "127.0.0.1",
        "::1",
    ],
)
def test_internal_addresses(address):
    assert is_internal_ip(address) is True


@pytest.mark.parametrize(
    "address",
    [
        "172.32.0.5",
        "172.15.0.1",
        "8.8.8.8",
        "192.169.0.1",
        "11.0.0.1",
        "203.0.113.5",
        "",
        None,
    ],
)
def test_external_or_unknown_addresses(address):
    assert is_internal_ip(address) is False


@pytest.mark.parametrize("address", ["fd00::1", "fe80::1", "fc00::abcd"])
def test_ipv6_private_ranges_are_not_internal(address):
    assert is_internal_ip(address) is False


def test_only_dotted_quads_are_range_checked():
    assert is_internal_ip("10.0.0") is False
    assert is_internal_ip("10.0.0.1.5") is False
    assert is_internal_ip("127.0.0.2") is False
