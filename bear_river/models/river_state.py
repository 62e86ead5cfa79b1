"""River state schemas - the canonical, persisted state of the economy."""

from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class StakePosition(BaseModel):
    """Bears staked by one account and when it last claimed."""
    units_staked: int = Field(default=0, ge=0)
    last_claim_time: int = Field(default=0, ge=0)


class RiverState(BaseModel):
    """The complete owned state of the river economy.

    Everything that persists lives here so a single object can be threaded
    through the systems, snapshotted and restored.
    """
    start_time: int = Field(ge=0, description="Timestamp epoch 0 starts at (immutable)")
    resource_supply: int = Field(description="Fish in the river, base units")
    total_units: int = Field(default=0, ge=0, description="Bears currently staked")
    total_distributed: int = Field(default=0, ge=0, description="Rewards minted so far")
    last_update_timestamp: int = Field(ge=0)
    paused: bool = False

    # Strictly increasing, append-only
    extinction_times: list[int] = Field(default_factory=list)

    stakers: dict[str, StakePosition] = Field(default_factory=dict)

    def position(self, account: str) -> Optional[StakePosition]:
        """Get an account's position without creating it."""
        return self.stakers.get(account)

    def ensure_position(self, account: str) -> StakePosition:
        """Get an account's position, creating an empty one on first touch."""
        position = self.stakers.get(account)
        if position is None:
            position = StakePosition()
            self.stakers[account] = position
        return position

    def summary(self) -> str:
        """Generate a plain-text summary of the river."""
        status = "PAUSED (extinct)" if self.paused else "active"
        return "\n".join([
            f"River status: {status}",
            f"  Fish supply (base units): {self.resource_supply}",
            f"  Bears staked: {self.total_units}",
            f"  Rewards distributed (base units): {self.total_distributed}",
            f"  Extinctions: {len(self.extinction_times)}",
            f"  Stakers: {len(self.stakers)}",
        ])


class RewardQuote(BaseModel):
    """Result of a reward calculation. Never persisted."""
    amount: int = 0
    capping_extinction_time: int = 0

    @property
    def capped(self) -> bool:
        return self.capping_extinction_time > 0


class UpdateOutcome(BaseModel):
    """What one ecosystem update did."""
    extinction: bool = False
    elapsed_epochs: int = 0
    consumption: int = 0
    regeneration: int = 0
    resource_supply: int = 0
    total_units: int = 0

    @property
    def applied(self) -> bool:
        """Whether the update touched the river at all."""
        return self.elapsed_epochs > 0


class StakeOutcome(BaseModel):
    """Result of a stake request.

    ``applied`` is False when the update run ahead of the stake caused an
    extinction; the request is then dropped without a deposit.
    """
    applied: bool
    units: int = 0
    extinction: bool = False
    rewards_settled: int = 0
    units_staked: int = 0


class ClaimOutcome(BaseModel):
    """Result of a reward claim."""
    amount: int = 0
    capping_extinction_time: int = 0
    extinction: bool = False
