"""
Backtest engine.

Replays historical signals through a strategy's entry rules and settles
every entered trade against the window's final price. Runs are
deterministic and never mutate the strategy or the signal list.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from loguru import logger

from polyedge.core.constants import DEFAULT_TRADE_SIZE, TRADING_DAYS_PER_YEAR
from polyedge.core.enums import Side
from polyedge.core.models.backtest import BacktestResult, BucketStats
from polyedge.core.models.signal import BacktestSignal
from polyedge.core.models.strategy import StrategyConfig
from polyedge.core.types.numeric import finite_or, is_finite, mean, safe_divide, std


@dataclass
class _Bucket:
    trades: int = 0
    wins: int = 0
    pnl: float = 0.0

    def add(self, won: bool, pnl: float) -> None:
        self.trades += 1
        if won:
            self.wins += 1
        self.pnl += pnl

    def stats(self) -> BucketStats:
        win_rate = safe_divide(self.wins, self.trades)
        return BucketStats(trades=self.trades, win_rate=win_rate, pnl=self.pnl)


def _finalize(buckets: dict[str, _Bucket]) -> dict[str, BucketStats]:
    return {key: bucket.stats() for key, bucket in buckets.items()}


def normalize_trade_size(trade_size: float) -> float:
    """Positive finite trade size, falling back to the default stake."""
    if is_finite(trade_size) and trade_size > 0:
        return float(trade_size)
    logger.warning(f"Invalid trade size {trade_size!r}, using default {DEFAULT_TRADE_SIZE}")
    return DEFAULT_TRADE_SIZE


def sharpe_ratio(daily_returns: Sequence[float]) -> float:
    """Annualised Sharpe ratio of daily returns, 0 when their spread is 0."""
    deviation = std(daily_returns)
    if deviation == 0:
        return 0.0
    return mean(daily_returns) / deviation * math.sqrt(TRADING_DAYS_PER_YEAR)


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Gross profit over absolute gross loss; inf with no losses, 0 with neither."""
    if gross_loss > 0:
        return gross_profit / gross_loss
    if gross_profit > 0:
        return math.inf
    return 0.0


def trade_won(signal: BacktestSignal) -> bool:
    """Settle a signal: UP wins above the price to beat, DOWN at or below it."""
    if signal.side == Side.UP:
        return signal.final_price > signal.price_to_beat
    return signal.final_price <= signal.price_to_beat


class BacktestEngine:
    """Evaluate a strategy over a list of historical signals.

    Every entered trade stakes a fixed trade_size. The strategy is cloned on
    construction and again on every run, so callers may reuse or modify
    their config freely.
    """

    def __init__(self, strategy: StrategyConfig, trade_size: float = DEFAULT_TRADE_SIZE) -> None:
        self.strategy = strategy.clone()
        self.trade_size = normalize_trade_size(trade_size)

    def should_enter(self, signal: BacktestSignal, config: StrategyConfig) -> bool:
        """Apply the entry rules to one settled signal.

        The edge threshold is the phase threshold scaled by the regime
        multiplier for the signal's side. The effective edge is used when
        finite, otherwise the raw edge.
        """
        base_threshold = config.edge_threshold(signal.phase)
        min_prob = config.min_prob(signal.phase)
        if base_threshold is None or min_prob is None:
            return False

        threshold = base_threshold * config.regime_multiplier(signal.regime, signal.side)
        if not is_finite(threshold) or not is_finite(min_prob):
            return False

        model_prob = signal.model_prob
        buy_price = signal.buy_price
        edge = signal.effective_edge if is_finite(signal.effective_edge) else signal.edge
        if not (is_finite(model_prob) and is_finite(buy_price) and is_finite(edge)):
            return False

        if edge < threshold or model_prob < min_prob:
            return False

        min_confidence = finite_or(config.min_confidence, 0.0)
        confidence = finite_or(signal.confidence, 0.0)
        return confidence >= min_confidence

    def _is_tradeable(self, signal: BacktestSignal, config: StrategyConfig) -> bool:
        return (
            signal.is_settled
            and is_finite(signal.price_to_beat)
            and signal.market_id not in config.skip_markets
        )

    def run(
        self, signals: Iterable[BacktestSignal], config: StrategyConfig | None = None
    ) -> BacktestResult:
        """Run the strategy over signals in input order.

        Args:
            signals: Historical signals; unsettled ones are counted but never traded
            config: Optional strategy override for this run only

        Returns:
            BacktestResult with totals, drawdown, Sharpe, profit factor and
            per-market, per-regime and per-phase breakdowns
        """
        config = config.clone() if config is not None else self.strategy.clone()
        trade_size = self.trade_size

        total_signals = 0
        wins = 0
        losses = 0
        gross_profit = 0.0
        gross_loss = 0.0
        equity = 0.0
        peak_equity = 0.0
        max_drawdown = 0.0
        per_market: dict[str, _Bucket] = {}
        per_regime: dict[str, _Bucket] = {}
        per_phase: dict[str, _Bucket] = {}
        daily_pnl: dict[str, float] = {}

        for signal in signals:
            total_signals += 1
            if not self._is_tradeable(signal, config) or not self.should_enter(signal, config):
                continue

            won = trade_won(signal)
            buy_price = signal.buy_price
            if won:
                pnl = trade_size * (1 - buy_price)
                wins += 1
                gross_profit += pnl
            else:
                pnl = -trade_size * buy_price
                losses += 1
                gross_loss += abs(pnl)

            equity += pnl
            peak_equity = max(peak_equity, equity)
            max_drawdown = max(max_drawdown, peak_equity - equity)

            regime_key = str(signal.regime) if signal.regime is not None else "UNKNOWN"
            per_market.setdefault(signal.market_id, _Bucket()).add(won, pnl)
            per_regime.setdefault(regime_key, _Bucket()).add(won, pnl)
            per_phase.setdefault(str(signal.phase), _Bucket()).add(won, pnl)
            day = signal.trading_day
            daily_pnl[day] = daily_pnl.get(day, 0.0) + pnl

        trades_entered = wins + losses
        total_pnl = equity
        daily_returns = [pnl / trade_size for pnl in daily_pnl.values()]

        result = BacktestResult(
            total_signals=total_signals,
            trades_entered=trades_entered,
            wins=wins,
            losses=losses,
            win_rate=safe_divide(wins, trades_entered),
            total_pnl=total_pnl,
            avg_pnl_per_trade=safe_divide(total_pnl, trades_entered),
            max_drawdown=max_drawdown,
            sharpe_ratio=sharpe_ratio(daily_returns),
            profit_factor=profit_factor(gross_profit, gross_loss),
            gross_profit=gross_profit,
            gross_loss=gross_loss,
            per_market=_finalize(per_market),
            per_regime=_finalize(per_regime),
            per_phase=_finalize(per_phase),
        )

        logger.debug(
            f"Backtest run: {total_signals} signals, {trades_entered} trades, "
            f"win rate {result.win_rate:.3f}, pnl {total_pnl:.2f}"
        )
        return result
