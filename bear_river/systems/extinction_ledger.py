"""Extinction ledger - append-only history of extinction timestamps."""

from __future__ import annotations
import bisect
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bear_river.models.river_state import RiverState

from bear_river.errors import InvariantGuard


class ExtinctionLedger:
    """Ordered record of extinctions, stored in the river state.

    Entries are only ever appended with increasing timestamps, so the list is
    always sorted and lookups are a binary search.
    """

    def __init__(self, state: "RiverState"):
        self.state = state

    @property
    def entries(self) -> list[int]:
        return self.state.extinction_times

    def __len__(self) -> int:
        return len(self.state.extinction_times)

    def first(self) -> Optional[int]:
        """Earliest extinction, if any."""
        entries = self.state.extinction_times
        return entries[0] if entries else None

    def last(self) -> Optional[int]:
        """Most recent extinction, if any."""
        entries = self.state.extinction_times
        return entries[-1] if entries else None

    def append(self, timestamp: int) -> None:
        """Record an extinction. Timestamps must be strictly increasing."""
        entries = self.state.extinction_times
        if entries and timestamp <= entries[-1]:
            raise InvariantGuard(
                f"Extinction at {timestamp} does not follow the last one at {entries[-1]}"
            )
        entries.append(timestamp)

    def find_first_after(self, timestamp: int) -> Optional[int]:
        """Earliest extinction strictly after ``timestamp``, in O(log n)."""
        entries = self.state.extinction_times
        if not entries:
            return None
        if timestamp < entries[0]:
            return entries[0]
        if timestamp >= entries[-1]:
            return None
        return entries[bisect.bisect_right(entries, timestamp)]
