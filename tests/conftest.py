"""Shared fixtures: a river on a manual clock with in-memory collaborators."""

from __future__ import annotations

import pytest

from bear_river.config import RiverConfig
from bear_river.systems.collaborators import InMemoryFungibleLedger, InMemoryNFTCustody
from bear_river.systems.epoch_clock import ManualClock
from bear_river.systems.staking_controller import StakingController

from helpers import START


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=START)


@pytest.fixture
def fungible() -> InMemoryFungibleLedger:
    return InMemoryFungibleLedger()


@pytest.fixture
def custody() -> InMemoryNFTCustody:
    custody = InMemoryNFTCustody()
    custody.mint("alice", 10)  # ids 1-10
    custody.mint("bob", 5)  # ids 11-15
    return custody


@pytest.fixture
def config() -> RiverConfig:
    return RiverConfig()


@pytest.fixture
def river(fungible, custody, clock, config) -> StakingController:
    return StakingController(fungible=fungible, custody=custody, clock=clock, config=config)
