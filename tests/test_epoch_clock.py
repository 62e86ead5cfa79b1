"""Tests for epoch arithmetic and the manual clock."""

import pytest

from bear_river.systems.epoch_clock import EpochClock, ManualClock, SystemClock

from helpers import EPOCH, START


class TestEpochClock:
    """Timestamps map onto fixed-length epochs from the start time."""

    def test_current_epoch_counts_whole_epochs(self):
        clock = ManualClock(start=START)
        epochs = EpochClock(clock, START, EPOCH)

        assert epochs.current_epoch() == 0
        clock.advance(EPOCH - 1)
        assert epochs.current_epoch() == 0
        clock.advance(1)
        assert epochs.current_epoch() == 1
        clock.advance(7 * EPOCH)
        assert epochs.current_epoch() == 8

    def test_epoch_of_start_and_earlier_is_zero(self):
        epochs = EpochClock(ManualClock(start=START), START, EPOCH)

        assert epochs.epoch_of(START) == 0
        assert epochs.epoch_of(START - 1) == 0
        assert epochs.epoch_of(0) == 0

    def test_epoch_of_boundaries(self):
        epochs = EpochClock(ManualClock(start=START), START, EPOCH)

        assert epochs.epoch_of(START + 1) == 0
        assert epochs.epoch_of(START + EPOCH - 1) == 0
        assert epochs.epoch_of(START + EPOCH) == 1
        assert epochs.epoch_of(START + 10 * EPOCH + 5) == 10

    def test_epoch_start(self):
        epochs = EpochClock(ManualClock(start=START), START, EPOCH)
        assert epochs.epoch_start(3) == START + 3 * EPOCH
        assert epochs.epoch_of(epochs.epoch_start(3)) == 3

    def test_four_epochs_per_day(self):
        clock = ManualClock(start=START)
        epochs = EpochClock(clock, START, EPOCH)
        clock.advance(2 * 24 * 60 * 60)
        assert epochs.current_epoch() == 8


class TestManualClock:
    def test_advance_epochs(self):
        clock = ManualClock(start=100)
        assert clock.advance_epochs(2, 50) == 200
        assert clock.now() == 200

    def test_cannot_go_backwards(self):
        clock = ManualClock(start=100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)
        clock.set(150)
        assert clock.now() == 150


def test_system_clock_returns_integer_seconds():
    now = SystemClock().now()
    assert isinstance(now, int)
    assert now > 1_600_000_000
