"""Epoch clock - converts chain time into discrete epochs."""

from __future__ import annotations
import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current timestamp (seconds). Never goes backwards."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """A clock that only moves when told to. Used by the REPL and tests."""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move time forward. Returns the new timestamp."""
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self._now += seconds
        return self._now

    def advance_epochs(self, epochs: int, epoch_length: int) -> int:
        """Move time forward by whole epochs."""
        return self.advance(epochs * epoch_length)

    def set(self, timestamp: int) -> None:
        """Jump to a timestamp no earlier than the current one."""
        if timestamp < self._now:
            raise ValueError("Time cannot move backwards")
        self._now = timestamp


class EpochClock:
    """Maps timestamps onto fixed-length epochs counted from a start time."""

    def __init__(self, clock: Clock, start_time: int, epoch_length: int):
        self.clock = clock
        self.start_time = start_time
        self.epoch_length = epoch_length

    def now(self) -> int:
        return self.clock.now()

    def current_epoch(self) -> int:
        """Epoch the clock is in right now."""
        return (self.clock.now() - self.start_time) // self.epoch_length

    def epoch_of(self, timestamp: int) -> int:
        """Epoch a timestamp falls in; anything at or before the start is epoch 0."""
        if timestamp <= self.start_time:
            return 0
        return (timestamp - self.start_time) // self.epoch_length

    def epoch_start(self, epoch: int) -> int:
        """Timestamp an epoch begins at."""
        return self.start_time + epoch * self.epoch_length
