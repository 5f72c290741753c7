"""
Unit tests for the backtest engine.

Tests cover trade entry rules, settlement, aggregate metrics and the
per-market, per-regime and per-phase breakdowns.
"""

import math

import pytest

from polyedge.backtest.engine import BacktestEngine, profit_factor, sharpe_ratio
from polyedge.core.enums import Phase, Regime, Side


class TestBacktestEngineSettlement:
    """Test suite for trade settlement and pnl."""

    def test_should_return_zeroed_metrics_for_empty_data(self, make_strategy) -> None:
        """Test that an empty signal list produces an all-zero result."""
        result = BacktestEngine(make_strategy()).run([])

        assert result.total_signals == 0
        assert result.trades_entered == 0
        assert result.wins == 0
        assert result.losses == 0
        assert result.win_rate == 0
        assert result.total_pnl == 0
        assert result.max_drawdown == 0
        assert result.sharpe_ratio == 0
        assert result.profit_factor == 0

    def test_should_ignore_unsettled_signals(self, make_strategy, make_signal) -> None:
        """Test that unsettled signals are counted but never traded."""
        result = BacktestEngine(make_strategy()).run([make_signal(final_price=None)])

        assert result.total_signals == 1
        assert result.trades_entered == 0

    def test_should_ignore_non_finite_prices(self, make_strategy, make_signal) -> None:
        """Test that NaN settlement or target prices skip the signal."""
        signals = [
            make_signal(final_price=math.nan),
            make_signal(price_to_beat=math.inf),
        ]
        result = BacktestEngine(make_strategy()).run(signals)

        assert result.total_signals == 2
        assert result.trades_entered == 0

    def test_should_settle_one_winning_up_trade(self, make_strategy, make_signal) -> None:
        """Test that a winning UP trade earns stake times (1 - buy price)."""
        result = BacktestEngine(make_strategy(), 5).run([make_signal()])

        assert result.trades_entered == 1
        assert result.wins == 1
        assert result.losses == 0
        assert result.total_pnl == pytest.approx(2.7)
        assert result.avg_pnl_per_trade == pytest.approx(2.7)

    def test_should_settle_one_losing_up_trade(self, make_strategy, make_signal) -> None:
        """Test that a losing UP trade loses stake times buy price."""
        result = BacktestEngine(make_strategy(), 5).run([make_signal(final_price=99.0)])

        assert result.trades_entered == 1
        assert result.wins == 0
        assert result.losses == 1
        assert result.total_pnl == pytest.approx(-2.3)

    def test_should_treat_down_tie_as_win(self, make_strategy, make_signal) -> None:
        """Test that DOWN wins when the final price equals the price to beat."""
        signal = make_signal(side=Side.DOWN, model_down=0.7, model_up=0.3, final_price=100.0)
        result = BacktestEngine(make_strategy(), 5).run([signal])

        assert result.trades_entered == 1
        assert result.wins == 1
        assert result.total_pnl == pytest.approx(2.3)

    def test_should_treat_up_tie_as_loss(self, make_strategy, make_signal) -> None:
        """Test that UP needs a strictly higher final price."""
        result = BacktestEngine(make_strategy(), 5).run([make_signal(final_price=100.0)])

        assert result.losses == 1

    def test_should_scale_pnl_with_trade_size(self, make_strategy, make_signal) -> None:
        """Test that pnl is linear in the stake."""
        small = BacktestEngine(make_strategy(), 5).run([make_signal()])
        large = BacktestEngine(make_strategy(), 10).run([make_signal()])

        assert large.total_pnl == pytest.approx(small.total_pnl * 2)

    @pytest.mark.parametrize("trade_size", [0, -1, math.nan, math.inf])
    def test_should_fall_back_to_default_trade_size(self, make_strategy, trade_size) -> None:
        """Test that an invalid stake is replaced by the default of 5."""
        engine = BacktestEngine(make_strategy(), trade_size)

        assert engine.trade_size == 5.0


class TestBacktestEngineEntryRules:
    """Test suite for the entry filters."""

    def test_should_block_trades_when_edge_is_below_threshold(
        self, make_strategy, make_signal
    ) -> None:
        """Test that a small edge is rejected."""
        signal = make_signal(effective_edge=0.01, edge=0.01)
        result = BacktestEngine(make_strategy()).run([signal])

        assert result.trades_entered == 0

    def test_should_block_trades_when_model_probability_is_below_minimum(
        self, make_strategy, make_signal
    ) -> None:
        """Test that the phase minimum probability applies."""
        result = BacktestEngine(make_strategy()).run([make_signal(model_up=0.51)])

        assert result.trades_entered == 0

    def test_should_block_trades_when_confidence_is_below_min_confidence(
        self, make_strategy, make_signal
    ) -> None:
        """Test the optional confidence gate."""
        strategy = make_strategy(min_confidence=0.8)
        result = BacktestEngine(strategy).run([make_signal(confidence=0.79)])

        assert result.trades_entered == 0

    def test_should_skip_configured_markets(self, make_strategy, make_signal) -> None:
        """Test that skip_markets excludes a market entirely."""
        strategy = make_strategy(skip_markets=["BTC"])
        result = BacktestEngine(strategy).run([make_signal(market_id="BTC")])

        assert result.total_signals == 1
        assert result.trades_entered == 0

    def test_should_apply_phase_thresholds(self, make_strategy, make_signal) -> None:
        """Test that each phase uses its own edge threshold."""
        signals = [
            make_signal(phase=Phase.EARLY, effective_edge=0.07),
            make_signal(phase=Phase.MID, effective_edge=0.07),
            make_signal(phase=Phase.LATE, effective_edge=0.07),
        ]
        result = BacktestEngine(make_strategy()).run(signals)

        assert result.trades_entered == 1
        assert result.per_phase["EARLY"].trades == 1
        assert "MID" not in result.per_phase
        assert "LATE" not in result.per_phase

    def test_should_apply_trend_aligned_multiplier(self, make_strategy, make_signal) -> None:
        """Test that trend-following trades get a relaxed threshold."""
        signal = make_signal(regime=Regime.TREND_UP, side=Side.UP, effective_edge=0.07)
        result = BacktestEngine(make_strategy()).run([signal])

        assert result.trades_entered == 1

    def test_should_apply_trend_opposed_multiplier(self, make_strategy, make_signal) -> None:
        """Test that counter-trend trades get a stricter threshold."""
        signal = make_signal(regime=Regime.TREND_DOWN, side=Side.UP, effective_edge=0.07)
        result = BacktestEngine(make_strategy()).run([signal])

        assert result.trades_entered == 0

    def test_should_apply_chop_multiplier(self, make_strategy, make_signal) -> None:
        """Test that CHOP raises the threshold."""
        signal = make_signal(regime=Regime.CHOP, effective_edge=0.09)
        result = BacktestEngine(make_strategy()).run([signal])

        assert result.trades_entered == 0

    def test_should_fall_back_to_raw_edge_if_effective_edge_is_non_finite(
        self, make_strategy, make_signal
    ) -> None:
        """Test the NaN effective edge fallback."""
        signal = make_signal(effective_edge=math.nan, edge=0.12)
        result = BacktestEngine(make_strategy()).run([signal])

        assert result.trades_entered == 1

    def test_should_reject_non_finite_buy_price(self, make_strategy, make_signal) -> None:
        """Test that a NaN market price never trades."""
        result = BacktestEngine(make_strategy()).run([make_signal(market_up=math.nan)])

        assert result.trades_entered == 0

    def test_should_reject_when_regime_multiplier_is_missing(
        self, make_strategy, make_signal
    ) -> None:
        """Test that a config without the needed multiplier never trades."""
        strategy = make_strategy(regime_multipliers={"CHOP": 1.3})
        result = BacktestEngine(strategy).run([make_signal()])

        assert result.trades_entered == 0

    def test_should_use_run_override_config(self, make_strategy, make_signal) -> None:
        """Test that a per-run config replaces the engine's strategy for that run."""
        engine = BacktestEngine(make_strategy())
        strict = make_strategy(edge_threshold_mid=0.5)

        assert engine.run([make_signal()], strict).trades_entered == 0
        assert engine.run([make_signal()]).trades_entered == 1

    def test_should_not_mutate_caller_config(self, make_strategy, make_signal) -> None:
        """Test that the engine works on its own copy of the strategy."""
        strategy = make_strategy()
        engine = BacktestEngine(strategy)
        strategy.edge_threshold_mid = 0.5
        strategy.regime_multipliers.clear()

        assert engine.run([make_signal()]).trades_entered == 1


class TestBacktestEngineMetrics:
    """Test suite for aggregate metrics and breakdowns."""

    def test_should_aggregate_by_market(self, make_strategy, make_signal) -> None:
        """Test per-market trade counts and win rates."""
        result = BacktestEngine(make_strategy()).run(
            [
                make_signal(market_id="BTC", final_price=101.0),
                make_signal(market_id="ETH", final_price=99.0),
            ]
        )

        assert result.per_market["BTC"].trades == 1
        assert result.per_market["BTC"].win_rate == 1
        assert result.per_market["ETH"].trades == 1
        assert result.per_market["ETH"].win_rate == 0

    def test_should_aggregate_by_regime(self, make_strategy, make_signal) -> None:
        """Test per-regime buckets keyed by the detected regime."""
        result = BacktestEngine(make_strategy()).run(
            [
                make_signal(regime=Regime.RANGE),
                make_signal(regime=Regime.TREND_UP, side=Side.UP, effective_edge=0.08),
            ]
        )

        assert result.per_regime["RANGE"].trades == 1
        assert result.per_regime["TREND_UP"].trades == 1

    def test_should_aggregate_by_phase(self, make_strategy, make_signal) -> None:
        """Test per-phase buckets."""
        result = BacktestEngine(make_strategy()).run(
            [
                make_signal(phase=Phase.EARLY, effective_edge=0.07),
                make_signal(phase=Phase.MID, effective_edge=0.09),
                make_signal(phase=Phase.LATE, effective_edge=0.12, model_up=0.65),
            ]
        )

        assert result.per_phase["EARLY"].trades == 1
        assert result.per_phase["MID"].trades == 1
        assert result.per_phase["LATE"].trades == 1

    def test_should_compute_max_drawdown_from_running_equity(
        self, make_strategy, make_signal
    ) -> None:
        """Test peak-to-trough drawdown: +2.7, -2.3, -2.3 gives 4.6."""
        signals = [
            make_signal(final_price=101.0),
            make_signal(final_price=99.0),
            make_signal(final_price=99.0),
        ]
        result = BacktestEngine(make_strategy(), 5).run(signals)

        assert result.max_drawdown == pytest.approx(4.6)

    def test_should_measure_drawdown_from_zero_equity(self, make_strategy, make_signal) -> None:
        """Test that losses from the start count as drawdown."""
        result = BacktestEngine(make_strategy(), 5).run([make_signal(final_price=99.0)])

        assert result.max_drawdown == pytest.approx(2.3)

    def test_should_compute_positive_sharpe_for_improving_daily_returns(
        self, make_strategy, make_signal
    ) -> None:
        """Test Sharpe over three profitable days."""
        signals = [
            make_signal(timestamp="2026-01-01T00:00:00.000Z"),
            make_signal(timestamp="2026-01-02T00:00:00.000Z", market_up=0.4),
            make_signal(timestamp="2026-01-03T00:00:00.000Z", market_up=0.35),
        ]
        result = BacktestEngine(make_strategy(), 5).run(signals)

        assert result.sharpe_ratio > 0

    def test_should_report_zero_sharpe_for_a_single_day(self, make_strategy, make_signals) -> None:
        """Test that one daily return has zero spread and zero Sharpe."""
        result = BacktestEngine(make_strategy()).run(make_signals(3))

        assert result.sharpe_ratio == 0

    def test_should_compute_infinite_profit_factor_when_there_are_no_losses(
        self, make_strategy, make_signal
    ) -> None:
        """Test the no-loss profit factor."""
        result = BacktestEngine(make_strategy(), 5).run(
            [make_signal(final_price=101.0), make_signal(final_price=102.0)]
        )

        assert result.profit_factor == math.inf
        assert result.to_dict()["profit_factor"] == "inf"

    def test_should_compute_finite_profit_factor_with_wins_and_losses(
        self, make_strategy, make_signal
    ) -> None:
        """Test gross profit over gross loss."""
        result = BacktestEngine(make_strategy(), 5).run(
            [make_signal(final_price=101.0), make_signal(final_price=99.0)]
        )

        assert result.profit_factor == pytest.approx(2.7 / 2.3)
        assert result.gross_profit == pytest.approx(2.7)
        assert result.gross_loss == pytest.approx(2.3)

    def test_should_handle_all_losses(self, make_strategy, make_signals) -> None:
        """Test a losing streak."""
        result = BacktestEngine(make_strategy()).run(
            make_signals(5, lambda index: {"final_price": 99.0})
        )

        assert result.wins == 0
        assert result.losses == 5
        assert result.win_rate == 0
        assert result.profit_factor == 0

    def test_should_handle_all_wins(self, make_strategy, make_signals) -> None:
        """Test a winning streak."""
        result = BacktestEngine(make_strategy()).run(make_signals(5))

        assert result.wins == 5
        assert result.losses == 0
        assert result.win_rate == 1

    def test_should_keep_counts_consistent(self, make_strategy, make_signals) -> None:
        """Test wins + losses == trades and total_signals == input length."""
        signals = make_signals(
            12,
            lambda index: {
                "final_price": None if index % 4 == 0 else (101.0 if index % 3 else 99.0),
                "effective_edge": 0.02 if index % 5 == 0 else 0.1,
            },
        )
        result = BacktestEngine(make_strategy()).run(signals)

        assert result.total_signals == 12
        assert result.wins + result.losses == result.trades_entered
        assert result.trades_entered < 12


class TestMetricHelpers:
    """Test suite for the Sharpe and profit factor helpers."""

    def test_should_annualise_sharpe_with_population_std(self) -> None:
        """Test mean / population std * sqrt(252)."""
        expected = 2.0 / 1.0 * math.sqrt(252)

        assert sharpe_ratio([1.0, 3.0]) == pytest.approx(expected)

    def test_should_return_zero_sharpe_without_spread(self) -> None:
        """Test the zero-deviation guard."""
        assert sharpe_ratio([0.5, 0.5]) == 0
        assert sharpe_ratio([]) == 0

    def test_should_follow_profit_factor_edge_cases(self) -> None:
        """Test inf with only profit, 0 with neither."""
        assert profit_factor(3.0, 0.0) == math.inf
        assert profit_factor(0.0, 0.0) == 0
        assert profit_factor(3.0, 1.5) == 2.0
