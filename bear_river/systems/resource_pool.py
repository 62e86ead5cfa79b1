"""Resource pool - fish consumption, logistic regeneration and extinction."""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bear_river.config import RiverConfig
    from bear_river.models.river_state import RiverState
    from bear_river.systems.epoch_clock import EpochClock
    from bear_river.systems.extinction_ledger import ExtinctionLedger

from bear_river.errors import PreconditionViolation
from bear_river.models.river_state import UpdateOutcome

logger = logging.getLogger(__name__)


class ResourcePool:
    """Applies one ecosystem update per call and detects collapse."""

    def __init__(
        self,
        state: "RiverState",
        config: "RiverConfig",
        epoch_clock: "EpochClock",
        ledger: "ExtinctionLedger",
    ):
        self.state = state
        self.config = config
        self.epoch_clock = epoch_clock
        self.ledger = ledger

    def elapsed_epochs(self) -> int:
        """Epochs passed since the last applied update."""
        return self.epoch_clock.current_epoch() - self.epoch_clock.epoch_of(
            self.state.last_update_timestamp
        )

    def consumption(self, elapsed: int) -> int:
        """Fish the staked bears eat over ``elapsed`` epochs."""
        return self.state.total_units * self.config.unit_cost_per_epoch * elapsed

    def regeneration(self, elapsed: int) -> int:
        """Logistic growth over ``elapsed`` epochs at the current supply.

        growth = supply * (capacity - supply) / capacity, scaled by
        regeneration_rate / scaling_factor per epoch. All multiplications
        happen before the divisions.
        """
        cfg = self.config
        supply = self.state.resource_supply
        if supply >= cfg.capacity:
            return 0
        remaining = cfg.capacity - supply
        growth_factor = supply * remaining // cfg.capacity
        return cfg.regeneration_rate * growth_factor * elapsed // cfg.scaling_factor

    def update(self) -> UpdateOutcome:
        """Bring the river up to the current epoch."""
        state = self.state
        elapsed = self.elapsed_epochs()
        if elapsed <= 0:
            return UpdateOutcome(
                resource_supply=state.resource_supply,
                total_units=state.total_units,
            )

        now = self.epoch_clock.now()
        consumption = self.consumption(elapsed)
        regeneration = self.regeneration(elapsed)

        if consumption > state.resource_supply + regeneration:
            logger.warning(
                "Extinction at %s: %s bears needed %s fish, river held %s (+%s regenerated)",
                now, state.total_units, consumption, state.resource_supply, regeneration,
            )
            # Extinction: the river resets and staking stops
            state.resource_supply = self.config.min_supply
            state.total_units = 0
            state.paused = True
            self.ledger.append(now)
            state.last_update_timestamp = now
            return UpdateOutcome(
                extinction=True,
                elapsed_epochs=elapsed,
                consumption=consumption,
                regeneration=regeneration,
                resource_supply=state.resource_supply,
                total_units=0,
            )

        # A river that survives never drops below the extinction floor
        state.resource_supply = max(
            min(state.resource_supply + regeneration - consumption, self.config.capacity),
            self.config.min_supply,
        )
        state.last_update_timestamp = now
        logger.debug(
            "Ecosystem updated over %d epoch(s): -%s +%s -> %s",
            elapsed, consumption, regeneration, state.resource_supply,
        )
        return UpdateOutcome(
            elapsed_epochs=elapsed,
            consumption=consumption,
            regeneration=regeneration,
            resource_supply=state.resource_supply,
            total_units=state.total_units,
        )

    def heal_threshold(self) -> int:
        """Supply the river must reach before staking can resume."""
        return self.config.capacity - self.config.heal_margin

    def can_heal(self) -> bool:
        return self.state.paused and self.state.resource_supply >= self.heal_threshold()

    def heal(self) -> None:
        """Resume staking after an extinction once the river has recovered."""
        if not self.state.paused:
            raise PreconditionViolation("River is not paused")
        if self.state.resource_supply < self.heal_threshold():
            raise PreconditionViolation(
                f"Fish supply {self.state.resource_supply} is below the heal threshold "
                f"{self.heal_threshold()}"
            )
        self.state.paused = False
        logger.info("River healed at supply %s", self.state.resource_supply)
