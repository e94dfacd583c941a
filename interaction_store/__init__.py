"""Persistent state store for multi-agent interactions."""

__version__ = "0.1.0"
