"""Bear River - a staking economy where bears eat fish and fish grow back."""

from bear_river.config import FISH, RiverConfig
from bear_river.errors import (
    BearRiverError,
    InvariantGuard,
    PreconditionViolation,
    ReentrancyError,
)
from bear_river.systems.staking_controller import StakingController

__all__ = [
    "FISH",
    "RiverConfig",
    "BearRiverError",
    "InvariantGuard",
    "PreconditionViolation",
    "ReentrancyError",
    "StakingController",
]
