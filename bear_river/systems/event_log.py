"""Event log system - the river's append-only history of events."""

from __future__ import annotations
from collections import Counter
from typing import Optional

from bear_river.models.events import Event, EventType, EventLog as EventLogModel


class EventLog:
    """Records events emitted by the staking controller.

    Events are only appended, except that a failed operation truncates the
    log back to where it started.
    """

    def __init__(self) -> None:
        self._log = EventLogModel()

    def add(self, event: Event) -> None:
        self._log.add(event)

    def get_recent(self, count: int = 10) -> list[Event]:
        return self._log.get_recent(count)

    def get_all(self) -> list[Event]:
        return self._log.events

    def get_by_type(self, event_type: EventType) -> list[Event]:
        return self._log.get_by_type(event_type)

    def find(self, event_id: str) -> Optional[Event]:
        return self._log.find(event_id)

    def last_of(self, event_type: EventType) -> Optional[Event]:
        return self._log.last_of(event_type)

    def count(self) -> int:
        return len(self._log.events)

    def truncate(self, count: int) -> None:
        """Drop every event after the first ``count``."""
        del self._log.events[count:]

    def export(self) -> list[dict]:
        """Export all events for serialization."""
        return [e.model_dump(mode="json") for e in self._log.events]

    def import_events(self, events_data: list[dict]) -> None:
        """Replace the log with serialized events."""
        self._log.events = [Event(**data) for data in events_data]

    def generate_report(
        self,
        start_epoch: Optional[int] = None,
        end_epoch: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> str:
        """Plain-text report of matching events, grouped by epoch."""
        events = self._log.filter(start_epoch=start_epoch, end_epoch=end_epoch, actor=actor)
        if not events:
            return "No events match the filter criteria."

        counts = Counter(e.event_type.value for e in events)
        lines = [
            f"=== Event Report: {len(events)} event(s), epochs {events[0].epoch}-{events[-1].epoch} ===",
            ", ".join(f"{name}: {n}" for name, n in sorted(counts.items())),
            "",
        ]

        current_epoch = None
        for event in events:
            if event.epoch != current_epoch:
                current_epoch = event.epoch
                lines.append(f"--- Epoch {current_epoch} ---")
            lines.append(f"  [{event.actor}] {event.description}")

        return "\n".join(lines)
