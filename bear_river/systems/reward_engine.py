"""Reward engine - accrues and settles per-account staking rewards."""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bear_river.config import RiverConfig
    from bear_river.models.river_state import RiverState
    from bear_river.systems.collaborators import Minter
    from bear_river.systems.epoch_clock import EpochClock
    from bear_river.systems.extinction_ledger import ExtinctionLedger

from bear_river.models.river_state import RewardQuote

logger = logging.getLogger(__name__)


class RewardEngine:
    """Computes rewards per account, capped at the first extinction it missed.

    A position that was open when an extinction happened died with it: it
    earns up to the extinction's epoch and nothing afterwards, even once the
    river is healed.
    """

    def __init__(
        self,
        state: "RiverState",
        config: "RiverConfig",
        epoch_clock: "EpochClock",
        ledger: "ExtinctionLedger",
        minter: "Minter",
    ):
        self.state = state
        self.config = config
        self.epoch_clock = epoch_clock
        self.ledger = ledger
        self.minter = minter

    def relevant_extinction(self, last_claim_time: int) -> int:
        """The extinction that caps accrual since ``last_claim_time``, or 0.

        The earliest entry is matched inclusively (a claim made at the exact
        moment of the first extinction is still capped by it); later entries
        must be strictly after the claim.
        """
        first = self.ledger.first()
        if first is None:
            return 0
        if last_claim_time <= first:
            return first
        return self.ledger.find_first_after(last_claim_time) or 0

    def calculate(self, account: str) -> RewardQuote:
        """Quote the rewards an account could claim right now. Pure."""
        position = self.state.position(account)
        units = position.units_staked if position else 0
        last_claim_time = position.last_claim_time if position else 0
        reward = self.config.unit_reward_per_epoch
        clock = self.epoch_clock

        relevant = self.relevant_extinction(last_claim_time)
        if relevant > 0:
            epochs = clock.epoch_of(relevant) - clock.epoch_of(last_claim_time)
            return RewardQuote(
                amount=reward * units * epochs,
                capping_extinction_time=relevant,
            )

        epochs = clock.current_epoch() - clock.epoch_of(last_claim_time)
        amount = reward * units * epochs if epochs > 0 and units > 0 else 0
        return RewardQuote(amount=amount)

    def settle(self, account: str) -> RewardQuote:
        """Pay out accrued rewards and restart accrual from now."""
        quote = self.calculate(account)
        position = self.state.ensure_position(account)

        if quote.capped and position.units_staked:
            logger.info(
                "%s lost %d bear(s) to the extinction at %s",
                account, position.units_staked, quote.capping_extinction_time,
            )
        if quote.capped:
            position.units_staked = 0

        if quote.amount > 0:
            self.minter.mint(account, quote.amount)
            self.state.total_distributed += quote.amount

        position.last_claim_time = self.epoch_clock.now()
        return quote
