"""Tests for reward accrual and capping at extinction boundaries."""

from hypothesis import given, settings
from hypothesis import strategies as st

from bear_river.config import FISH, RiverConfig
from bear_river.models.river_state import RiverState
from bear_river.systems.epoch_clock import EpochClock, ManualClock
from bear_river.systems.extinction_ledger import ExtinctionLedger
from bear_river.systems.reward_engine import RewardEngine

from helpers import (
    DAY,
    REWARD,
    START,
    advance_epochs,
    force_extinction,
    refill_and_heal,
)


class TestCalculate:
    def test_rewards_accrue_per_bear_per_epoch(self, river, clock):
        river.stake_legacy_nfts("alice", [1, 2, 3])
        advance_epochs(clock, 8)

        quote = river.calculate_rewards("alice")

        assert quote.amount == 3 * REWARD * 8
        assert quote.amount == 24 * FISH // 10  # 2.4 fish
        assert quote.capping_extinction_time == 0

    def test_stake_mid_epoch_then_two_days(self, river, clock):
        clock.advance(1)
        river.stake_legacy_nfts("alice", [1, 2, 3])
        clock.advance(2 * DAY)

        assert river.calculate_rewards("alice").amount == 3 * REWARD * 8

    def test_unknown_account_quotes_nothing(self, river):
        quote = river.calculate_rewards("nobody")
        assert quote.amount == 0
        assert quote.capping_extinction_time == 0

    def test_no_bears_no_rewards(self, river, clock):
        river.claim_rewards("alice")
        advance_epochs(clock, 5)
        assert river.calculate_rewards("alice").amount == 0

    def test_calculate_is_pure(self, river, clock):
        river.stake_legacy_nfts("alice", [1, 2])
        advance_epochs(clock, 3)
        before = river.state.model_dump()

        river.calculate_rewards("alice")
        river.calculate_rewards("alice")

        assert river.state.model_dump() == before
        assert river.balance_of("alice") == 0


class TestSettle:
    def test_settle_pays_and_restarts_accrual(self, river, clock):
        river.stake_legacy_nfts("alice", [1, 2, 3])
        advance_epochs(clock, 8)

        outcome = river.claim_rewards("alice")

        assert outcome.amount == 3 * REWARD * 8
        assert river.balance_of("alice") == 3 * REWARD * 8
        assert river.state.total_distributed == 3 * REWARD * 8
        assert river.position("alice").last_claim_time == clock.now()

    def test_settle_twice_pays_once(self, river, clock):
        river.stake_legacy_nfts("alice", [1, 2])
        advance_epochs(clock, 2)

        first = river.claim_rewards("alice")
        second = river.claim_rewards("alice")

        assert first.amount == 2 * REWARD * 2
        assert second.amount == 0
        assert river.balance_of("alice") == first.amount

    def test_engine_settle_is_idempotent(self, river, clock):
        river.stake("alice", 4)
        advance_epochs(clock, 1)

        assert river.rewards.settle("alice").amount == 4 * REWARD
        assert river.rewards.settle("alice").amount == 0

    def test_settle_creates_position(self, river):
        river.rewards.settle("carol")
        position = river.state.position("carol")
        assert position is not None
        assert position.units_staked == 0

    def test_claims_one_epoch_apart_increase_balance(self, river, clock):
        river.stake_legacy_nfts("alice", [1, 2, 3])
        advance_epochs(clock, 1)
        river.claim_rewards("alice")
        first = river.balance_of("alice")

        advance_epochs(clock, 1)
        river.claim_rewards("alice")
        second = river.balance_of("alice")

        assert 0 < first < second
        assert second == 2 * 3 * REWARD


class TestExtinctionCapping:
    def test_reward_capped_at_extinction_epoch(self, river, clock):
        river.stake_legacy_nfts("alice", [1, 2])
        advance_epochs(clock, 3)
        river.set_unit_cost_per_epoch(7_000 * FISH)
        river.set_regeneration_rate(0)
        advance_epochs(clock, 1)
        river.update_ecosystem()
        extinction = river.extinction_times()[0]

        quote = river.calculate_rewards("alice")
        assert quote.amount == 2 * REWARD * 4
        assert quote.capping_extinction_time == extinction

        # Waiting longer changes nothing
        advance_epochs(clock, 10)
        assert river.calculate_rewards("alice") == quote

    def test_settling_a_capped_position_kills_it(self, river, clock):
        extinction = force_extinction(river, clock)
        advance_epochs(clock, 4)

        outcome = river.claim_rewards("alice")

        assert outcome.amount == 2 * REWARD
        assert outcome.capping_extinction_time == extinction
        assert river.position("alice").units_staked == 0
        assert river.calculate_rewards("alice").amount == 0

    def test_collapse_epochs_are_forfeited_after_heal(self, river, clock):
        force_extinction(river, clock)
        before_heal = river.calculate_rewards("alice")

        refill_and_heal(river, clock)
        advance_epochs(clock, 5)

        assert not river.state.paused
        assert river.calculate_rewards("alice") == before_heal

    def test_each_staker_capped_by_the_extinction_they_missed(self, river, clock):
        # First extinction at epoch 1 kills alice's two bears
        first = force_extinction(river, clock)
        refill_and_heal(river, clock)
        river.set_regeneration_rate(0)

        # Bob stakes at epoch 2 and is wiped out at epoch 4
        river.stake_legacy_nfts("bob", [11])
        advance_epochs(clock, 1)
        assert not river.update_ecosystem().extinction
        advance_epochs(clock, 1)
        assert river.update_ecosystem().extinction
        second = river.extinction_times()[1]

        alice = river.calculate_rewards("alice")
        bob = river.calculate_rewards("bob")

        assert alice.capping_extinction_time == first
        assert alice.amount == 2 * REWARD * 1
        assert bob.capping_extinction_time == second
        assert bob.amount == 1 * REWARD * 2

    def test_restake_after_heal_starts_fresh(self, river, clock):
        force_extinction(river, clock)
        refill_and_heal(river, clock)

        outcome = river.stake_legacy_nfts("alice", [5])

        assert outcome.applied
        assert outcome.rewards_settled == 2 * REWARD
        assert river.position("alice").units_staked == 1
        assert river.state.total_units == 1
        advance_epochs(clock, 3)
        quote = river.calculate_rewards("alice")
        assert quote.amount == 3 * REWARD
        assert quote.capping_extinction_time == 0


class TestRelevantExtinction:
    def make_engine(self, river, entries):
        river.state.extinction_times = list(entries)
        return river.rewards

    def test_no_history(self, river):
        assert river.rewards.relevant_extinction(START) == 0

    def test_first_entry_boundary_is_inclusive(self, river):
        engine = self.make_engine(river, [START + 100, START + 200, START + 300])
        assert engine.relevant_extinction(START + 100) == START + 100
        assert engine.relevant_extinction(START) == START + 100

    def test_later_entries_are_strict(self, river):
        engine = self.make_engine(river, [START + 100, START + 200, START + 300])
        assert engine.relevant_extinction(START + 200) == START + 300
        assert engine.relevant_extinction(START + 150) == START + 200
        assert engine.relevant_extinction(START + 300) == 0


@settings(max_examples=300)
@given(
    entries=st.lists(st.integers(min_value=1, max_value=10**6), unique=True, min_size=1).map(sorted),
    last_claim=st.integers(min_value=0, max_value=10**6 + 10),
)
def test_relevant_extinction_matches_linear_scan(entries, last_claim):
    state = RiverState(
        start_time=0, resource_supply=1, last_update_timestamp=0, extinction_times=entries
    )
    clock = EpochClock(ManualClock(start=0), 0, 100)
    engine = RewardEngine(state, RiverConfig(), clock, ExtinctionLedger(state), minter=None)

    if last_claim <= entries[0]:
        expected = entries[0]
    else:
        expected = next((e for e in entries if e > last_claim), 0)
    assert engine.relevant_extinction(last_claim) == expected
