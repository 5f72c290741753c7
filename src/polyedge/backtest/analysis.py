"""
Weakness analysis over backtest breakdowns.
"""

from dataclasses import dataclass

from polyedge.core.models.backtest import BacktestResult, BucketStats


@dataclass(frozen=True)
class StrategyWeakness:
    """An underperforming slice of trades and what to do about it."""

    pattern: str
    count: int
    win_rate: float
    avg_pnl: float
    suggestion: str


# (min trades, max win rate) below which a bucket is flagged
REGIME_RULE = (3, 0.45)
MARKET_RULE = (5, 0.40)
PHASE_RULE = (5, 0.40)


def _flag(
    buckets: dict[str, BucketStats], rule: tuple[int, float], pattern: str, suggestion: str
) -> list[StrategyWeakness]:
    min_trades, max_win_rate = rule
    return [
        StrategyWeakness(
            pattern=pattern.format(key=key),
            count=stats.trades,
            win_rate=stats.win_rate,
            avg_pnl=stats.pnl / stats.trades,
            suggestion=suggestion.format(key=key),
        )
        for key, stats in buckets.items()
        if stats.trades >= min_trades and stats.win_rate < max_win_rate
    ]


def identify_weaknesses(result: BacktestResult) -> list[StrategyWeakness]:
    """Flag regimes, markets and phases whose win rate is too low to be profitable."""
    return [
        *_flag(
            result.per_regime,
            REGIME_RULE,
            "{key} regime trades",
            "Consider avoiding trades during {key} regime or adjust thresholds",
        ),
        *_flag(
            result.per_market,
            MARKET_RULE,
            "{key} market trades",
            "Review {key} model accuracy - consider market-specific adjustments",
        ),
        *_flag(
            result.per_phase,
            PHASE_RULE,
            "{key} phase entries",
            "Raise the {key} edge threshold or minimum probability",
        ),
    ]


def generate_recommendations(weaknesses: list[StrategyWeakness]) -> list[str]:
    """One line per weakness: pattern, win rate, average pnl and the suggestion."""
    return [
        f"[{w.pattern}: {w.win_rate * 100:.1f}% WR, avg PnL {w.avg_pnl:.2f}] -> {w.suggestion}"
        for w in weaknesses
    ]
