"""Event schemas - chronological record of everything that happens on the river."""

from __future__ import annotations
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field
import uuid


class EventType(str, Enum):
    """Categories of events."""
    STAKE = "stake"
    CLAIM_REWARDS = "claim_rewards"
    ECOSYSTEM_UPDATED = "ecosystem_updated"
    EXTINCTION = "extinction"
    CONTRACT_PAUSED = "contract_paused"
    PARAMETER_CHANGED = "parameter_changed"


class Event(BaseModel):
    """A recorded event in the river's history."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])

    # Chain time, not wall time
    timestamp: int = 0
    epoch: int = 0

    event_type: EventType
    description: str

    # An account, or "system" for ecosystem changes
    actor: str = "system"

    # e.g. {"token_id": 3, "count": 1}
    payload: dict[str, Any] = Field(default_factory=dict)

    def summary(self) -> str:
        return f"[Epoch {self.epoch}] {self.actor}: {self.description}"

    def detailed(self) -> str:
        """Multi-line description including the payload."""
        lines = [
            f"Event {self.id}: {self.event_type.value}",
            f"At {self.timestamp} (epoch {self.epoch}) by {self.actor}",
            self.description,
        ]
        for key, value in self.payload.items():
            lines.append(f"  {key} = {value}")
        return "\n".join(lines)


class EventLog(BaseModel):
    """Container for event history, oldest first."""
    events: list[Event] = Field(default_factory=list)

    def add(self, event: Event) -> None:
        self.events.append(event)

    def get_recent(self, count: int = 10) -> list[Event]:
        return self.events[-count:] if count > 0 else []

    def get_by_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self.events if e.event_type == event_type]

    def find(self, event_id: str) -> Optional[Event]:
        """Look an event up by id or id prefix."""
        for event in self.events:
            if event.id.startswith(event_id):
                return event
        return None

    def filter(
        self,
        start_epoch: Optional[int] = None,
        end_epoch: Optional[int] = None,
        actor: Optional[str] = None,
        event_type: Optional[EventType] = None,
    ) -> list[Event]:
        """Events matching every given criterion."""
        return [
            e for e in self.events
            if (start_epoch is None or e.epoch >= start_epoch)
            and (end_epoch is None or e.epoch <= end_epoch)
            and (actor is None or e.actor == actor)
            and (event_type is None or e.event_type == event_type)
        ]

    def last_of(self, event_type: EventType) -> Optional[Event]:
        """Most recent event of a type."""
        for event in reversed(self.events):
            if event.event_type == event_type:
                return event
        return None
