"""Error taxonomy for the monitor core."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for monitor errors."""


class ValidationFailure(MonitorError):
    """Raised when a target registration is rejected (bad URL, bad or duplicate alias)."""


class PersistenceFailure(MonitorError):
    """Raised when a read or write against the store fails."""


class FatalFailure(MonitorError):
    """Raised when the store cannot be opened at startup."""
