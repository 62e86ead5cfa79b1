"""Error types raised by the river economy."""

from __future__ import annotations


class BearRiverError(ValueError):
    """Base class for all river economy errors."""


class PreconditionViolation(BearRiverError):
    """An operation was rejected before it changed any state."""


class ReentrancyError(PreconditionViolation):
    """A mutating operation was entered while another one was still running."""


class InvariantGuard(BearRiverError):
    """A structural invariant of the economy would be broken."""
