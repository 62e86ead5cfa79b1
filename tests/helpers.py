"""Helpers for driving a river through time in tests."""

from __future__ import annotations

from bear_river.config import FISH, RiverConfig
from bear_river.systems.epoch_clock import ManualClock
from bear_river.systems.staking_controller import StakingController

START = 1_700_000_000
EPOCH = RiverConfig().epoch_length
DAY = 24 * 60 * 60
REWARD = RiverConfig().unit_reward_per_epoch

# Enough to wipe out the river in one epoch with two bears
STARVING_CONSUMPTION = 7_000 * FISH
# Refills an empty river to capacity in one epoch
FLOOD_REGENERATION = 100_000_000


def advance_epochs(clock: ManualClock, epochs: int) -> None:
    clock.advance(epochs * EPOCH)


def force_extinction(river: StakingController, clock: ManualClock, account: str = "alice") -> int:
    """Stake two bears, starve them, and return the extinction timestamp."""
    token_ids = river.custody.tokens_of(account)[:2]
    river.stake_legacy_nfts(account, token_ids)
    river.set_unit_cost_per_epoch(STARVING_CONSUMPTION)
    river.set_regeneration_rate(0)
    advance_epochs(clock, 1)
    outcome = river.update_ecosystem()
    assert outcome.extinction
    return clock.now()


def refill_and_heal(river: StakingController, clock: ManualClock) -> None:
    """Flood the river back to capacity and resume staking."""
    river.set_regeneration_rate(FLOOD_REGENERATION)
    advance_epochs(clock, 1)
    river.update_ecosystem()
    river.heal()
