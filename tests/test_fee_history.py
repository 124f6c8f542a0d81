"""
Fee-history percentile estimator tests
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from boltzmann.data.errors import InsufficientData
from boltzmann.data.models import FeeHistorySample
from boltzmann.data.pipelines.fee_history import (
    FALLBACK_PRIORITY_FEES,
    estimate_gas_tiers,
    priority_fee_tiers,
    wei_to_gwei,
)

GWEI = 1_000_000_000


def history(base_fees_wei, rewards_wei):
    """Build samples the way the RPC returns them: one more base fee than reward rows."""
    return [
        FeeHistorySample(base_fee_wei=base, priority_fee_samples_wei=rewards_wei[i] if i < len(rewards_wei) else [])
        for i, base in enumerate(base_fees_wei)
    ]


class TestEstimateGasTiers:
    """Gas tiers from base fee plus percentile priority fees"""

    def test_reference_scenario(self):
        samples = history(
            [28 * GWEI, 29 * GWEI, 29 * GWEI, 31 * GWEI, 30 * GWEI],
            [[1 * GWEI], [2 * GWEI], [3 * GWEI], [4 * GWEI]],
        )

        tiers = estimate_gas_tiers(samples)

        assert tiers.low == pytest.approx(32.0)
        assert tiers.average == pytest.approx(33.0)
        assert tiers.high == pytest.approx(34.0)

    def test_uses_latest_base_fee_not_average(self):
        samples = history([100 * GWEI, 10 * GWEI], [[5 * GWEI]])

        tiers = estimate_gas_tiers(samples)

        # latest base fee is 10 gwei; single sample collapses all tiers to 5 gwei priority
        assert tiers.low == pytest.approx(15.0)
        assert tiers.high == pytest.approx(15.0)

    def test_base_fee_keeps_full_precision(self):
        samples = history([12_345_678_901], [])

        tiers = estimate_gas_tiers(samples)

        assert tiers.low == pytest.approx(12.345678901 + 1.0, abs=1e-12)
        assert tiers.average == pytest.approx(12.345678901 + 2.0, abs=1e-12)
        assert tiers.high == pytest.approx(12.345678901 + 3.0, abs=1e-12)

    def test_no_priority_fees_uses_conservative_fallback(self):
        samples = history([25_500_000_000, 25_500_000_000, 25_500_000_000], [[], []])

        tiers = estimate_gas_tiers(samples)

        assert (tiers.low, tiers.average, tiers.high) == pytest.approx((26.5, 27.5, 28.5))

    def test_empty_history_is_insufficient(self):
        with pytest.raises(InsufficientData):
            estimate_gas_tiers([])

    def test_only_first_reward_percentile_is_used(self):
        samples = history(
            [0, 0, 0, 0, 0],
            [[10 * GWEI, 90 * GWEI, 99 * GWEI]] * 4,
        )

        tiers = estimate_gas_tiers(samples)

        assert (tiers.low, tiers.average, tiers.high) == pytest.approx((10.0, 10.0, 10.0))

    def test_deterministic_regardless_of_sample_order(self):
        rewards = [[r * GWEI] for r in (7, 3, 11, 5, 2, 13, 17, 4)]
        shuffled = rewards[:]
        random.Random(42).shuffle(shuffled)

        a = estimate_gas_tiers(history([20 * GWEI] * 9, rewards))
        b = estimate_gas_tiers(history([20 * GWEI] * 9, shuffled))

        assert (a.low, a.average, a.high) == (b.low, b.average, b.high)

    def test_observed_at_is_computation_time(self):
        before = datetime.now(timezone.utc)
        tiers = estimate_gas_tiers(history([GWEI], []))
        assert before - timedelta(seconds=1) <= tiers.observed_at <= datetime.now(timezone.utc)


class TestPriorityFeeTiers:
    """Index-based percentile selection and floors"""

    def test_index_selection_for_five_samples(self):
        # sorted [2, 4, 6, 8, 10]: indices 1, 2, 3
        assert priority_fee_tiers([10.0, 2.0, 8.0, 4.0, 6.0]) == (4.0, 6.0, 8.0)

    def test_floors_apply_in_quiet_periods(self):
        assert priority_fee_tiers([0.1, 0.2, 0.05, 0.3]) == (1.0, 2.0, 3.0)

    def test_floor_only_lifts_low_values(self):
        low, avg, high = priority_fee_tiers([1.5, 1.5, 2.5, 50.0])
        assert (low, avg, high) == (1.5, 2.5, 50.0)

    def test_single_sample_collapses_tiers(self):
        # L=1 picks index 0 for every tier; only the floors separate them
        assert priority_fee_tiers([5.0]) == (5.0, 5.0, 5.0)
        assert priority_fee_tiers([0.5]) == (1.0, 2.0, 3.0)

    def test_two_samples_share_average_and_high(self):
        # L=2: indices 0, 1, 1
        assert priority_fee_tiers([4.0, 9.0]) == (4.0, 9.0, 9.0)

    def test_empty_returns_fallback(self):
        assert priority_fee_tiers([]) == FALLBACK_PRIORITY_FEES


def test_wei_to_gwei():
    assert wei_to_gwei(30_000_000_000) == 30.0
    assert wei_to_gwei(1) == pytest.approx(1e-9)
