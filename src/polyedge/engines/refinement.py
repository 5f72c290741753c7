"""
Pre-trade filter and refined strategy preset.

Rules learned from resolved paper trades: high predicted edge was
overconfident, CHOP regimes lost money, and entries very early or very
late in the window underperformed.
"""

from dataclasses import dataclass, field

from polyedge.core.enums import Phase, Regime
from polyedge.core.models.strategy import BlendWeights, MarketPerformance, StrategyConfig
from polyedge.core.types.numeric import is_finite

# Markets whose win rate below this always skip CHOP
CHOP_SKIP_WIN_RATE = 0.45

REFINED_STRATEGY = StrategyConfig(
    edge_threshold_early=0.05,
    edge_threshold_mid=0.08,
    edge_threshold_late=0.12,
    min_prob_early=0.6,
    min_prob_mid=0.65,
    min_prob_late=0.72,
    blend_weights=BlendWeights(vol=0.5, ta=0.5),
    regime_multipliers={
        "CHOP": 2.0,
        "RANGE": 1.0,
        "TREND_ALIGNED": 0.9,
        "TREND_OPPOSED": 1.4,
    },
)


@dataclass(frozen=True)
class RefinementRules:
    """Thresholds of the pre-trade filter. Times are minutes left in the window."""

    max_expected_edge: float = 0.25
    optimal_edge_max: float = 0.18
    max_volatility_15m: float = 0.004
    min_volatility_15m: float = 0.0005
    early_entry_max_time: float = 13.0
    late_entry_min_time: float = 3.0
    skip_chop: bool = True
    skip_chop_markets: frozenset[str] = field(default_factory=lambda: frozenset({"BTC", "ETH"}))


DEFAULT_RULES = RefinementRules()


@dataclass(frozen=True)
class TradeFilterDecision:
    should_trade: bool
    reason: str | None = None


def _skips_chop(
    market: str, rules: RefinementRules, market_performance: dict[str, MarketPerformance] | None
) -> bool:
    if rules.skip_chop or market in rules.skip_chop_markets:
        return True
    perf = (market_performance or {}).get(market)
    return perf is not None and perf.win_rate < CHOP_SKIP_WIN_RATE


def should_take_trade(
    market: str,
    regime: Regime | str | None,
    edge: float,
    time_left: float,
    volatility: float,
    phase: Phase | str,
    rules: RefinementRules = DEFAULT_RULES,
    market_performance: dict[str, MarketPerformance] | None = None,
) -> TradeFilterDecision:
    """
    Decide whether a live signal passes the refinement filter.

    Checks run in order and the first failing check names the reason:
    CHOP regime, entry timing, volatility window, then edge overconfidence.

    Args:
        market: Market identifier, e.g. "BTC"
        regime: Detected regime of the underlying
        edge: Predicted edge of the signal
        time_left: Minutes remaining in the window
        volatility: Realized 15-minute volatility
        phase: Entry phase
        rules: Filter thresholds
        market_performance: Per-market win-rate overrides, e.g. StrategyConfig.market_performance

    Returns:
        TradeFilterDecision with should_trade and, when rejected, a reason tag
    """
    if regime == Regime.CHOP and _skips_chop(market, rules, market_performance):
        return TradeFilterDecision(False, "skip_chop_regime")

    if phase == Phase.EARLY and time_left > rules.early_entry_max_time:
        return TradeFilterDecision(False, "too_early_in_window")
    if not is_finite(time_left) or time_left < rules.late_entry_min_time:
        return TradeFilterDecision(False, "too_late_in_window")

    if not is_finite(volatility) or volatility > rules.max_volatility_15m:
        return TradeFilterDecision(False, "volatility_too_high")
    if volatility < rules.min_volatility_15m:
        return TradeFilterDecision(False, "volatility_too_low")

    if not is_finite(edge) or edge > rules.max_expected_edge:
        return TradeFilterDecision(False, "overconfident_edge_prediction")
    if edge > rules.optimal_edge_max:
        return TradeFilterDecision(False, "edge_in_overconfidence_zone")

    return TradeFilterDecision(True)
