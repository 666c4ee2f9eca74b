"""
Tests for lb_engine.math.distribution.

Стратегии (spot / curve / bid-ask), план по интервалам, правило сторон,
построение deltaIds / distributionX / distributionY.
"""

import logging
import pytest

from lb_engine.errors import InvalidParameterError
from lb_engine.math.bins import ACTIVE_CENTER, price_to_bin_id
from lb_engine.math.distribution import (
    DISPLAY_SCALE,
    PRECISION,
    DistributionStrategy,
    LiquidityRange,
    get_raw_weights,
    get_strategy_weights,
    plan_distribution,
    build_deposit_distribution,
    suggest_range,
    full_range,
    range_percentages,
    print_distribution,
)


# ---------------------------------------------------------------------------
# DistributionStrategy
# ---------------------------------------------------------------------------

class TestDistributionStrategy:

    @pytest.mark.parametrize("value, expected", [
        ("spot", DistributionStrategy.UNIFORM),
        ("uniform", DistributionStrategy.UNIFORM),
        ("curve", DistributionStrategy.CURVE),
        ("CURVE", DistributionStrategy.CURVE),
        ("bidask", DistributionStrategy.BID_ASK),
        ("bid-ask", DistributionStrategy.BID_ASK),
        ("BID_ASK", DistributionStrategy.BID_ASK),
    ])
    def test_parse(self, value, expected):
        assert DistributionStrategy.parse(value) is expected

    def test_parse_enum_passthrough(self):
        assert DistributionStrategy.parse(DistributionStrategy.CURVE) is DistributionStrategy.CURVE

    def test_parse_unknown_raises(self):
        with pytest.raises(InvalidParameterError):
            DistributionStrategy.parse("fibonacci")


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

class TestStrategyWeights:

    def test_uniform_weights_exact(self):
        """Каждый вес spot при 10 бинах равен ровно 1/10."""
        weights = get_strategy_weights(10, DistributionStrategy.UNIFORM)
        assert all(w == 1 / 10 for w in weights)

    @pytest.mark.parametrize("strategy", list(DistributionStrategy))
    def test_weights_sum_to_one(self, strategy):
        assert sum(get_strategy_weights(25, strategy)) == pytest.approx(1.0)

    def test_curve_peaks_in_center(self):
        weights = get_raw_weights(10, DistributionStrategy.CURVE)
        center = weights[5]
        assert center == 1.0
        assert center > weights[0]
        assert center > weights[-1]

    def test_bid_ask_peaks_at_edges(self):
        weights = get_raw_weights(10, DistributionStrategy.BID_ASK)
        center = weights[5]
        assert center == pytest.approx(0.1)
        assert weights[0] > center
        assert weights[-1] > center

    def test_bid_ask_edge_value(self):
        """x = -1 на левом краю: 1 + 0.1."""
        assert get_raw_weights(10, DistributionStrategy.BID_ASK)[0] == pytest.approx(1.1)

    def test_single_bin(self):
        assert get_strategy_weights(1, DistributionStrategy.CURVE) == [1.0]

    @pytest.mark.parametrize("num_bins", [0, -3])
    def test_invalid_num_bins_raises(self, num_bins):
        with pytest.raises(InvalidParameterError):
            get_raw_weights(num_bins, DistributionStrategy.UNIFORM)


# ---------------------------------------------------------------------------
# plan_distribution
# ---------------------------------------------------------------------------

class TestPlanDistribution:

    def test_equal_width_intervals(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4)
        assert [(b.price_lower, b.price_upper) for b in planned] == [
            (1.0, 1.5), (1.5, 2.0), (2.0, 2.5), (2.5, 3.0)
        ]
        assert [b.mid_price for b in planned] == [1.25, 1.75, 2.25, 2.75]

    def test_side_assignment(self):
        """Выше текущей цены - tokenX, ниже - tokenY."""
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4)
        for b in planned[:2]:
            assert b.weight_x == 0.0
            assert b.weight_y == b.weight
        for b in planned[2:]:
            assert b.weight_y == 0.0
            assert b.weight_x == b.weight

    def test_active_interval(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4)
        assert [b.is_active for b in planned] == [False, False, True, False]

    def test_range_above_price_is_all_x(self):
        planned = plan_distribution(LiquidityRange(3.0, 5.0), 2.0, DistributionStrategy.CURVE, 8)
        assert all(b.weight_y == 0.0 for b in planned)
        assert not any(b.is_active for b in planned)

    def test_range_below_price_is_all_y(self):
        planned = plan_distribution(LiquidityRange(1.0, 1.5), 2.0, DistributionStrategy.BID_ASK, 8)
        assert all(b.weight_x == 0.0 for b in planned)

    def test_display_capped(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.CURVE, 10)
        heights = [b.display_x + b.display_y for b in planned]
        assert max(heights) == DISPLAY_SCALE
        assert all(0 < h <= DISPLAY_SCALE for h in heights)

    def test_inverted_range_gives_empty_plan(self):
        assert plan_distribution(LiquidityRange(2.0, 1.0), 1.5, DistributionStrategy.UNIFORM, 10) == []

    def test_degenerate_range_gives_empty_plan(self):
        assert plan_distribution(LiquidityRange(1.0, 1.0), 1.0, DistributionStrategy.CURVE, 10) == []

    def test_strategy_string_accepted(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, "bidask", 4)
        assert len(planned) == 4

    def test_bin_ids_assigned_with_bin_step(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4, bin_step=25)
        assert [b.bin_id for b in planned] == [price_to_bin_id(b.mid_price, 25) for b in planned]

    def test_no_bin_ids_without_bin_step(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4)
        assert all(b.bin_id is None for b in planned)

    def test_invalid_num_bins_raises(self):
        with pytest.raises(InvalidParameterError):
            plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 0)


# ---------------------------------------------------------------------------
# build_deposit_distribution
# ---------------------------------------------------------------------------

class TestBuildDepositDistribution:

    def test_distributions_sum_to_precision(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.CURVE, 10, bin_step=25)
        active_id = price_to_bin_id(2.0, 25)
        dist = build_deposit_distribution(planned, active_id)
        assert sum(dist.distribution_x) == PRECISION
        assert sum(dist.distribution_y) == PRECISION

    def test_delta_ids_relative_to_active(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4, bin_step=25)
        active_id = price_to_bin_id(2.0, 25)
        dist = build_deposit_distribution(planned, active_id)
        assert dist.bin_ids == sorted(dist.bin_ids)
        assert dist.delta_ids == [b - active_id for b in dist.bin_ids]
        assert dist.delta_ids[0] < 0 < dist.delta_ids[-1]

    def test_one_sided_deposit(self):
        planned = plan_distribution(LiquidityRange(3.0, 5.0), 2.0, DistributionStrategy.UNIFORM, 4, bin_step=25)
        dist = build_deposit_distribution(planned, price_to_bin_id(2.0, 25))
        assert sum(dist.distribution_x) == PRECISION
        assert dist.distribution_y == [0, 0, 0, 0]

    def test_intervals_in_same_bin_merged(self):
        """Узкий диапазон при binStep=100: все интервалы попадают в один бин."""
        planned = plan_distribution(LiquidityRange(1.0, 1.001), 0.5, DistributionStrategy.UNIFORM, 4, bin_step=100)
        dist = build_deposit_distribution(planned, ACTIVE_CENTER)
        assert dist.bin_ids == [ACTIVE_CENTER]
        assert dist.distribution_x == [PRECISION]

    def test_empty_plan(self):
        dist = build_deposit_distribution([], ACTIVE_CENTER)
        assert dist.bin_ids == []
        assert dist.distribution_x == []

    def test_missing_bin_ids_raises(self):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4)
        with pytest.raises(InvalidParameterError):
            build_deposit_distribution(planned, ACTIVE_CENTER)


# ---------------------------------------------------------------------------
# Range helpers
# ---------------------------------------------------------------------------

class TestRangeHelpers:

    @pytest.mark.parametrize("strategy, percent", [
        (DistributionStrategy.UNIFORM, 50),
        (DistributionStrategy.CURVE, 10),
        (DistributionStrategy.BID_ASK, 30),
    ])
    def test_suggest_range(self, strategy, percent):
        suggested = suggest_range(100.0, strategy)
        assert suggested.min_price == pytest.approx(100 - percent)
        assert suggested.max_price == pytest.approx(100 + percent)

    def test_suggest_range_scaled_by_volatility(self):
        suggested = suggest_range(100.0, DistributionStrategy.CURVE, volatility_percent=200)
        assert suggested.min_price == pytest.approx(80.0)
        assert suggested.max_price == pytest.approx(120.0)

    def test_suggest_range_invalid_price(self):
        with pytest.raises(InvalidParameterError):
            suggest_range(0, DistributionStrategy.UNIFORM)

    def test_full_range(self):
        full = full_range(100.0)
        assert full.min_price == pytest.approx(1.0)
        assert full.max_price == pytest.approx(1000.0)

    def test_range_percentages(self):
        min_pct, max_pct, width_pct = range_percentages(LiquidityRange(90.0, 120.0), 100.0)
        assert min_pct == pytest.approx(-10.0)
        assert max_pct == pytest.approx(20.0)
        assert width_pct == pytest.approx(30.0)

    def test_range_percentages_without_price(self):
        assert range_percentages(LiquidityRange(90.0, 120.0), 0) == (-50.0, 50.0, 0.0)

    def test_liquidity_range_validity(self):
        assert LiquidityRange(1.0, 2.0).is_valid
        assert not LiquidityRange(2.0, 1.0).is_valid
        assert not LiquidityRange(0.0, 1.0).is_valid


# ---------------------------------------------------------------------------
# print_distribution
# ---------------------------------------------------------------------------

class TestPrintDistribution:

    def test_logs_table(self, caplog):
        planned = plan_distribution(LiquidityRange(1.0, 3.0), 2.0, DistributionStrategy.UNIFORM, 4, bin_step=25)
        with caplog.at_level(logging.INFO, logger="lb_engine.math.distribution"):
            print_distribution(planned, current_price=2.0)
        assert "LIQUIDITY DISTRIBUTION" in caplog.text
        assert "<- active" in caplog.text
        assert "TOTAL: 4 bins, X 50.0% / Y 50.0%" in caplog.text
