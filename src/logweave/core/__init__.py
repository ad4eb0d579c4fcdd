"""Core utilities for Logweave: logging, diagnostics and errors."""
