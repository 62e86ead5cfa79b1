"""Economic configuration - constants for the river, overridable from the environment."""

from __future__ import annotations
import os
from decimal import Decimal, InvalidOperation
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from bear_river.errors import InvariantGuard

load_dotenv()


# Base units per whole fish (18 decimals, like an ERC20 token)
FISH = 10**18

ENV_PREFIX = "BEAR_RIVER_"


def to_base_units(value: str | int | Decimal) -> int:
    """Convert a whole-fish amount ("0.1", 7, Decimal("2.5")) to base units."""
    try:
        amount = Decimal(str(value).strip()) * FISH
    except InvalidOperation:
        raise ValueError(f"Not a fish amount: {value!r}")
    if amount != amount.to_integral_value():
        raise ValueError(f"Fish amount {value!r} has more than 18 decimals")
    return int(amount)


def format_fish(amount: int, places: int = 4) -> str:
    """Render a base-unit amount as whole fish for display."""
    whole = Decimal(amount) / FISH
    return f"{whole:,.{places}f}"


class RiverConfig(BaseModel):
    """Economic parameters of the river. Amounts are in base units."""
    epoch_length: int = Field(default=6 * 60 * 60, description="Seconds per epoch")

    # Fish supply
    initial_supply: int = Field(default=6899 * FISH, description="Fish in the river at start")
    capacity: int = Field(default=10_000 * FISH, description="Carrying capacity of the river")
    min_supply: int = Field(default=1 * FISH, description="Floor the river resets to on extinction")
    heal_margin: int = Field(default=1_000 * FISH, description="Heal allowed once supply >= capacity - margin")

    # Logistic regeneration: rate / scaling_factor per epoch
    regeneration_rate: int = Field(default=100, ge=0)
    scaling_factor: int = Field(default=10_000, gt=0)

    # Bears
    unit_cost_per_epoch: int = Field(default=FISH // 10, ge=0, description="Fish eaten per bear per epoch")
    unit_reward_per_epoch: int = Field(default=FISH // 10, ge=0, description="Reward per bear per epoch")
    unit_cost: int = Field(default=10 * FISH, description="Price of one bear in fish")

    def check_invariants(self) -> None:
        """Raise InvariantGuard if the parameters cannot describe a working river."""
        if self.epoch_length <= 0:
            raise InvariantGuard("Epoch length must be positive")
        if self.capacity <= 0:
            raise InvariantGuard("Capacity must be positive")
        if self.min_supply <= 0:
            raise InvariantGuard("Minimum supply must be positive")
        if self.min_supply >= self.capacity:
            raise InvariantGuard("Minimum supply must be below capacity")
        if self.initial_supply >= self.capacity:
            raise InvariantGuard("Initial supply must be below capacity")
        if self.initial_supply < self.min_supply:
            raise InvariantGuard("Initial supply must not be below the minimum supply")
        if not 0 <= self.heal_margin < self.capacity:
            raise InvariantGuard("Heal margin must be within [0, capacity)")
        if self.unit_cost <= 0:
            raise InvariantGuard("Bear price must be positive")

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "RiverConfig":
        """Build a config from BEAR_RIVER_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        overrides: dict[str, int] = {}

        # Plain integers
        for name in ("epoch_length", "regeneration_rate", "scaling_factor"):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw:
                overrides[name] = int(raw)

        # Whole-fish amounts
        for name in (
            "initial_supply",
            "capacity",
            "min_supply",
            "heal_margin",
            "unit_cost_per_epoch",
            "unit_reward_per_epoch",
            "unit_cost",
        ):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw:
                overrides[name] = to_base_units(raw)

        return cls(**overrides)


def log_level_from_env() -> str:
    """Log level for the CLI."""
    return os.getenv(ENV_PREFIX + "LOG_LEVEL", "WARNING").upper()
