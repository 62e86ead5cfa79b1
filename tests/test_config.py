"""Tests for economic configuration and fish amount parsing."""

import pytest

from bear_river.config import FISH, RiverConfig, format_fish, log_level_from_env, to_base_units
from bear_river.errors import InvariantGuard
from bear_river.systems.collaborators import InMemoryFungibleLedger, InMemoryNFTCustody
from bear_river.systems.epoch_clock import ManualClock
from bear_river.systems.staking_controller import StakingController

from helpers import START


class TestDefaults:
    def test_default_economy(self):
        config = RiverConfig()

        assert config.epoch_length == 6 * 60 * 60
        assert config.initial_supply == 6899 * FISH
        assert config.capacity == 10_000 * FISH
        assert config.min_supply == FISH
        assert config.capacity - config.heal_margin == 9_000 * FISH
        assert config.regeneration_rate == 100
        assert config.scaling_factor == 10_000
        assert config.unit_cost_per_epoch == FISH // 10
        assert config.unit_reward_per_epoch == FISH // 10
        assert config.unit_cost == 10 * FISH

    def test_defaults_pass_the_checks(self):
        RiverConfig().check_invariants()


class TestFishAmounts:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1", FISH),
            ("0.1", FISH // 10),
            (" 2.5 ", 5 * FISH // 2),
            (7, 7 * FISH),
            ("0.000000000000000001", 1),
        ],
    )
    def test_to_base_units(self, value, expected):
        assert to_base_units(value) == expected

    @pytest.mark.parametrize("value", ["fish", "", "0.0000000000000000001"])
    def test_to_base_units_rejects(self, value):
        with pytest.raises(ValueError):
            to_base_units(value)

    def test_format_fish(self):
        assert format_fish(24 * FISH // 10) == "2.4000"
        assert format_fish(10_000 * FISH, places=0) == "10,000"


class TestFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert RiverConfig.from_env({}) == RiverConfig()

    def test_overrides(self):
        config = RiverConfig.from_env({
            "BEAR_RIVER_EPOCH_LENGTH": "3600",
            "BEAR_RIVER_REGENERATION_RATE": "250",
            "BEAR_RIVER_CAPACITY": "20000",
            "BEAR_RIVER_UNIT_COST_PER_EPOCH": "0.5",
            "UNRELATED": "1",
        })

        assert config.epoch_length == 3600
        assert config.regeneration_rate == 250
        assert config.capacity == 20_000 * FISH
        assert config.unit_cost_per_epoch == FISH // 2
        assert config.initial_supply == 6899 * FISH

    def test_bad_amount_raises(self):
        with pytest.raises(ValueError):
            RiverConfig.from_env({"BEAR_RIVER_UNIT_COST": "lots"})

    def test_log_level(self, monkeypatch):
        monkeypatch.delenv("BEAR_RIVER_LOG_LEVEL", raising=False)
        assert log_level_from_env() == "WARNING"
        monkeypatch.setenv("BEAR_RIVER_LOG_LEVEL", "debug")
        assert log_level_from_env() == "DEBUG"


class TestConstructionGuards:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"epoch_length": 0},
            {"capacity": 0},
            {"min_supply": 0},
            {"min_supply": 10_000 * FISH},
            {"initial_supply": 10_000 * FISH},
            {"initial_supply": FISH // 2},
            {"heal_margin": 10_000 * FISH},
            {"heal_margin": -1},
            {"unit_cost": 0},
        ],
    )
    def test_unworkable_config_is_rejected(self, overrides):
        config = RiverConfig(**overrides)

        with pytest.raises(InvariantGuard):
            StakingController(
                fungible=InMemoryFungibleLedger(),
                custody=InMemoryNFTCustody(),
                clock=ManualClock(start=START),
                config=config,
            )

    def test_pydantic_rejects_negative_rates(self):
        with pytest.raises(ValueError):
            RiverConfig(regeneration_rate=-1)
        with pytest.raises(ValueError):
            RiverConfig(scaling_factor=0)
