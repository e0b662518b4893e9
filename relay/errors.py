"""Exceptions raised by the progression engine."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for progression engine errors."""


class StateCorrupt(RelayError):
    """Raised when a persisted payload cannot be decoded into a record."""


class SchedulerLeak(RelayError):
    """Raised when work is scheduled through a scope that was already closed."""

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Timer scope '{owner}' is closed")


class UnknownScreen(RelayError, KeyError):
    """Raised for a screen id the router does not know."""


class UnknownPuzzle(RelayError, KeyError):
    """Raised for a puzzle id with no registered validator."""
