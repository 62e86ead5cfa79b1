"""Staking controller - the river's public operations.

Every mutating operation runs the same way:

1. take the busy guard and snapshot the state,
2. bring the ecosystem up to date (this may record an extinction),
3. settle the caller's rewards against the extinction history,
4. only then touch stake sizes.

If anything raises along the way the snapshot is restored and the error
propagates, so a failed call leaves no trace.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bear_river.systems.collaborators import FungibleLedger, NFTCustody
    from bear_river.systems.epoch_clock import Clock

from bear_river.config import RiverConfig
from bear_river.errors import InvariantGuard, PreconditionViolation, ReentrancyError
from bear_river.models.events import Event, EventType
from bear_river.models.river_state import (
    ClaimOutcome,
    RewardQuote,
    RiverState,
    StakeOutcome,
    StakePosition,
    UpdateOutcome,
)
from bear_river.systems.collaborators import PendingMints
from bear_river.systems.epoch_clock import EpochClock
from bear_river.systems.event_log import EventLog
from bear_river.systems.extinction_ledger import ExtinctionLedger
from bear_river.systems.resource_pool import ResourcePool
from bear_river.systems.reward_engine import RewardEngine

logger = logging.getLogger(__name__)


class StakingController:
    """Orchestrates staking, claiming, ecosystem updates and healing."""

    def __init__(
        self,
        fungible: "FungibleLedger",
        custody: "NFTCustody",
        clock: "Clock",
        config: Optional[RiverConfig] = None,
        event_log: Optional[EventLog] = None,
    ):
        self.config = config or RiverConfig()
        self.config.check_invariants()

        self.fungible = fungible
        self.custody = custody
        self.clock = clock
        self.event_log = event_log or EventLog()

        now = clock.now()
        self.state = RiverState(
            start_time=now,
            resource_supply=self.config.initial_supply,
            last_update_timestamp=now,
        )

        self.epoch_clock = EpochClock(clock, self.state.start_time, self.config.epoch_length)
        self.ledger = ExtinctionLedger(self.state)
        self.pool = ResourcePool(self.state, self.config, self.epoch_clock, self.ledger)
        # Rewards are minted only once the operation that earned them commits
        self._mints = PendingMints(self.fungible)
        self.rewards = RewardEngine(
            self.state, self.config, self.epoch_clock, self.ledger, self._mints
        )

        self._busy = False

    # ------------------------------------------------------------------
    # Guard and rollback
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        """Hold the busy flag and roll back on failure."""
        if self._busy:
            raise ReentrancyError(f"Re-entrant call to {operation} rejected")
        self._busy = True
        snapshot = self.state.model_copy(deep=True)
        events_before = self.event_log.count()
        try:
            yield
            self._mints.flush()
        except Exception:
            self._mints.discard()
            self._restore(snapshot)
            self.event_log.truncate(events_before)
            raise
        finally:
            self._busy = False

    def _restore(self, snapshot: RiverState) -> None:
        """Copy a snapshot back into the live state object the systems share."""
        for name in RiverState.model_fields:
            setattr(self.state, name, getattr(snapshot, name))

    @property
    def busy(self) -> bool:
        return self._busy

    # ------------------------------------------------------------------
    # Internal steps
    # ------------------------------------------------------------------

    def _emit(
        self,
        event_type: EventType,
        description: str,
        actor: str = "system",
        **payload: Any,
    ) -> Event:
        event = Event(
            event_type=event_type,
            description=description,
            actor=actor,
            timestamp=self.clock.now(),
            epoch=self.epoch_clock.current_epoch(),
            payload=payload,
        )
        self.event_log.add(event)
        return event

    def _update(self, always_emit: bool = False) -> UpdateOutcome:
        """Run the resource update and record what happened."""
        outcome = self.pool.update()

        if outcome.extinction:
            timestamp = self.ledger.last()
            self._emit(
                EventType.EXTINCTION,
                "The fish ran out. Every bear is gone.",
                timestamp_of_extinction=timestamp,
                consumption=outcome.consumption,
                regeneration=outcome.regeneration,
            )
            self._emit(
                EventType.CONTRACT_PAUSED,
                "Staking paused until the river heals",
                paused=True,
            )
        elif outcome.applied or always_emit:
            self._emit(
                EventType.ECOSYSTEM_UPDATED,
                f"River updated over {outcome.elapsed_epochs} epoch(s)",
                resource_supply=outcome.resource_supply,
                total_units=outcome.total_units,
                elapsed_epochs=outcome.elapsed_epochs,
                consumption=outcome.consumption,
                regeneration=outcome.regeneration,
            )

        return outcome

    def _settle(self, account: str) -> RewardQuote:
        quote = self.rewards.settle(account)
        if quote.amount > 0:
            self._emit(
                EventType.CLAIM_REWARDS,
                f"Claimed {quote.amount} base units of fish",
                actor=account,
                amount=quote.amount,
            )
        return quote

    def _stake(
        self,
        account: str,
        units: int,
        deposit: Optional[Callable[[], None]] = None,
        token_ids: Optional[list[int]] = None,
    ) -> StakeOutcome:
        """Update, settle, then deposit and add units unless the river just died."""
        outcome = self._update()
        quote = self._settle(account)

        if outcome.extinction:
            logger.info("Stake of %d bear(s) by %s dropped: extinction", units, account)
            return StakeOutcome(
                applied=False,
                extinction=True,
                rewards_settled=quote.amount,
                units_staked=self.state.ensure_position(account).units_staked,
            )

        if deposit is not None:
            deposit()

        position = self.state.ensure_position(account)
        self.state.total_units += units
        position.units_staked += units

        if token_ids:
            for token_id in token_ids:
                self._emit(
                    EventType.STAKE,
                    f"Staked bear #{token_id}",
                    actor=account,
                    token_id=token_id,
                    count=1,
                )
        else:
            self._emit(
                EventType.STAKE,
                f"Staked {units} bear(s)",
                actor=account,
                token_id=0,
                count=units,
            )

        logger.info("%s staked %d bear(s), now %d", account, units, position.units_staked)
        return StakeOutcome(
            applied=True,
            units=units,
            rewards_settled=quote.amount,
            units_staked=position.units_staked,
        )

    def _require_active(self) -> None:
        if self.state.paused:
            raise PreconditionViolation("Contract is paused")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def stake(self, account: str, units: int) -> StakeOutcome:
        """Stake ``units`` bears whose deposit was handled elsewhere."""
        with self._transaction("stake"):
            self._require_active()
            if units <= 0:
                raise PreconditionViolation("Must stake at least one bear")
            return self._stake(account, units)

    def stake_legacy_nfts(self, account: str, token_ids: list[int]) -> StakeOutcome:
        """Stake legacy bear NFTs, one bear per token."""
        with self._transaction("stake_legacy_nfts"):
            self._require_active()
            if not token_ids:
                raise PreconditionViolation("No tokens to stake")
            if len(set(token_ids)) != len(token_ids):
                raise PreconditionViolation("Duplicate token ids")
            for token_id in token_ids:
                if self.custody.owner_of(token_id) != account:
                    raise PreconditionViolation(f"Token {token_id} is not owned by {account}")

            def deposit() -> None:
                for token_id in token_ids:
                    self.custody.transfer_in(account, token_id)

            return self._stake(account, len(token_ids), deposit, token_ids=list(token_ids))

    def stake_with_erc20(self, account: str, amount: int) -> StakeOutcome:
        """Buy bears with fish. Only whole bears are bought; the rest stays with the caller."""
        with self._transaction("stake_with_erc20"):
            self._require_active()
            unit_cost = self.config.unit_cost
            if amount < unit_cost:
                raise PreconditionViolation(
                    f"Amount {amount} is below the price of one bear ({unit_cost})"
                )
            units = amount // unit_cost
            price = units * unit_cost
            # Rewards settled by this call are minted on commit and cannot pay for it
            balance = self.fungible.balance_of(account)
            if balance < price:
                raise PreconditionViolation(
                    f"Insufficient balance: {account} holds {balance}, needs {price}"
                )

            def deposit() -> None:
                self.fungible.burn(account, price)

            return self._stake(account, units, deposit)

    def claim_rewards(self, account: str) -> ClaimOutcome:
        """Settle an account's rewards. Always allowed, even while paused."""
        with self._transaction("claim_rewards"):
            outcome = self._update()
            quote = self._settle(account)
            return ClaimOutcome(
                amount=quote.amount,
                capping_extinction_time=quote.capping_extinction_time,
                extinction=outcome.extinction,
            )

    def update_ecosystem(self) -> UpdateOutcome:
        """Bring the river up to date. Anyone may call this."""
        with self._transaction("update_ecosystem"):
            return self._update(always_emit=True)

    def heal(self) -> None:
        """Resume staking once the river has recovered near capacity."""
        with self._transaction("heal"):
            self.pool.heal()
            self._emit(
                EventType.CONTRACT_PAUSED,
                "River healed, staking resumed",
                paused=False,
            )

    def calculate_rewards(self, account: str) -> RewardQuote:
        """Quote claimable rewards without changing anything."""
        return self.rewards.calculate(account)

    # ------------------------------------------------------------------
    # Parameter tuning
    # ------------------------------------------------------------------

    def set_unit_cost_per_epoch(self, amount: int) -> None:
        """Change how many fish each bear eats per epoch."""
        if amount < 0:
            raise PreconditionViolation("Consumption cannot be negative")
        self._set_parameter("unit_cost_per_epoch", amount)

    def set_regeneration_rate(self, rate: int) -> None:
        """Change the logistic regeneration rate (over scaling_factor)."""
        if rate < 0:
            raise PreconditionViolation("Regeneration rate cannot be negative")
        self._set_parameter("regeneration_rate", rate)

    def _set_parameter(self, name: str, value: int) -> None:
        with self._transaction(f"set {name}"):
            # Past epochs settle under the old parameter
            self._update()
            old_value = getattr(self.config, name)
            self._emit(
                EventType.PARAMETER_CHANGED,
                f"{name} changed from {old_value} to {value}",
                parameter=name,
                old_value=old_value,
                new_value=value,
            )
        # The config is not part of the snapshot, so it changes only after commit
        setattr(self.config, name, value)
        logger.info("%s set to %s", name, value)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self.fungible.balance_of(account)

    def position(self, account: str) -> StakePosition:
        """An account's position (empty if it never staked or claimed)."""
        return self.state.position(account) or StakePosition()

    def current_epoch(self) -> int:
        return self.epoch_clock.current_epoch()

    def extinction_times(self) -> list[int]:
        return list(self.ledger.entries)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        """Export the persisted state surface for serialization."""
        return self.state.model_dump(mode="json")

    def import_state(self, data: dict[str, Any]) -> None:
        """Replace the live state with serialized data."""
        if self._busy:
            raise ReentrancyError("Cannot import state during an operation")
        state = RiverState(**data)
        cfg = self.config

        if not cfg.min_supply <= state.resource_supply <= cfg.capacity:
            raise InvariantGuard(
                f"Imported supply {state.resource_supply} is outside "
                f"[{cfg.min_supply}, {cfg.capacity}]"
            )
        if state.paused and state.total_units != 0:
            raise InvariantGuard("Imported state is paused with bears still staked")
        if any(b <= a for a, b in zip(state.extinction_times, state.extinction_times[1:])):
            raise InvariantGuard("Imported extinction history is not strictly increasing")
        # Positions killed by an extinction keep their count until settled
        if state.total_units > sum(p.units_staked for p in state.stakers.values()):
            raise InvariantGuard("Imported bear count exceeds the stakers' positions")

        self._restore(state)
        self.epoch_clock.start_time = state.start_time
