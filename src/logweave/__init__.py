"""Logweave: security telemetry normalization and attack-chain derivation."""

__version__ = "0.1.0"
