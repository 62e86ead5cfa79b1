"""Core river systems: epochs, extinctions, fish, rewards and staking."""

from .epoch_clock import Clock, EpochClock, ManualClock, SystemClock
from .extinction_ledger import ExtinctionLedger
from .resource_pool import ResourcePool
from .reward_engine import RewardEngine
from .collaborators import FungibleLedger, NFTCustody, InMemoryFungibleLedger, InMemoryNFTCustody
from .event_log import EventLog
from .staking_controller import StakingController

__all__ = [
    "Clock",
    "EpochClock",
    "ManualClock",
    "SystemClock",
    "ExtinctionLedger",
    "ResourcePool",
    "RewardEngine",
    "FungibleLedger",
    "NFTCustody",
    "InMemoryFungibleLedger",
    "InMemoryNFTCustody",
    "EventLog",
    "StakingController",
]
