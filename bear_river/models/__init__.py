"""Pydantic data models for river state, outcomes and events."""

from .river_state import (
    RiverState,
    StakePosition,
    RewardQuote,
    UpdateOutcome,
    StakeOutcome,
    ClaimOutcome,
)
from .events import Event, EventType, EventLog

__all__ = [
    "RiverState",
    "StakePosition",
    "RewardQuote",
    "UpdateOutcome",
    "StakeOutcome",
    "ClaimOutcome",
    "Event",
    "EventType",
    "EventLog",
]
