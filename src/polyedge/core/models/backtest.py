"""
Backtest, A/B test, optimization and cross-validation result models.

Results are derived values: every engine run builds a fresh result and
nothing mutates it afterwards.
"""

import math
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from .strategy import StrategyConfig


@dataclass(frozen=True)
class BucketStats:
    """Trades, win rate and pnl for one breakdown key."""

    trades: int
    win_rate: float
    pnl: float

    def to_dict(self) -> dict[str, Any]:
        return {"trades": self.trades, "win_rate": self.win_rate, "pnl": self.pnl}


@dataclass(frozen=True)
class BacktestResult:
    """Aggregate output of one engine run over a signal list."""

    total_signals: int
    trades_entered: int
    wins: int
    losses: int
    win_rate: float
    total_pnl: float
    avg_pnl_per_trade: float
    max_drawdown: float
    sharpe_ratio: float
    profit_factor: float
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    per_market: dict[str, BucketStats] = field(default_factory=dict)
    per_regime: dict[str, BucketStats] = field(default_factory=dict)
    per_phase: dict[str, BucketStats] = field(default_factory=dict)

    def metric(self, name: str) -> float:
        """Look up a numeric metric by field name."""
        value = getattr(self, name)
        return float(value)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary; an infinite profit factor becomes "inf"."""
        return {
            "total_signals": self.total_signals,
            "trades_entered": self.trades_entered,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "total_pnl": self.total_pnl,
            "avg_pnl_per_trade": self.avg_pnl_per_trade,
            "max_drawdown": self.max_drawdown,
            "sharpe_ratio": self.sharpe_ratio,
            "profit_factor": "inf" if math.isinf(self.profit_factor) else self.profit_factor,
            "gross_profit": self.gross_profit,
            "gross_loss": self.gross_loss,
            "per_market": {k: v.to_dict() for k, v in self.per_market.items()},
            "per_regime": {k: v.to_dict() for k, v in self.per_regime.items()},
            "per_phase": {k: v.to_dict() for k, v in self.per_phase.items()},
        }


@dataclass(frozen=True)
class ABTestResult:
    """Comparison of two strategies over the same signals."""

    strategy_a: BacktestResult
    strategy_b: BacktestResult
    win_rate_diff: float
    pnl_diff: float
    sharpe_diff: float
    chi_squared: float
    p_value: float
    is_significant: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy_a": self.strategy_a.to_dict(),
            "strategy_b": self.strategy_b.to_dict(),
            "win_rate_diff": self.win_rate_diff,
            "pnl_diff": self.pnl_diff,
            "sharpe_diff": self.sharpe_diff,
            "chi_squared": self.chi_squared,
            "p_value": self.p_value,
            "is_significant": self.is_significant,
        }


@dataclass(frozen=True)
class OptimizationEntry:
    """One grid combination and its backtest result."""

    config: StrategyConfig
    result: BacktestResult


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of a grid search, sorted best first."""

    best_config: StrategyConfig
    best_result: BacktestResult
    all_results: list[OptimizationEntry]
    total_combinations: int

    def to_frame(self) -> pd.DataFrame:
        """Tabulate every combination: tuned parameters plus headline metrics."""
        rows = []
        for rank, entry in enumerate(self.all_results, start=1):
            config, result = entry.config, entry.result
            rows.append(
                {
                    "rank": rank,
                    "edge_threshold_early": config.edge_threshold_early,
                    "edge_threshold_mid": config.edge_threshold_mid,
                    "edge_threshold_late": config.edge_threshold_late,
                    "min_prob_early": config.min_prob_early,
                    "min_prob_mid": config.min_prob_mid,
                    "min_prob_late": config.min_prob_late,
                    **{
                        f"regime_{key.value.lower()}": value
                        for key, value in config.regime_multipliers.items()
                    },
                    "trades_entered": result.trades_entered,
                    "win_rate": result.win_rate,
                    "total_pnl": result.total_pnl,
                    "sharpe_ratio": result.sharpe_ratio,
                    "max_drawdown": result.max_drawdown,
                    "profit_factor": result.profit_factor,
                }
            )
        return pd.DataFrame(rows)


@dataclass(frozen=True)
class CrossValidationResult:
    """Walk-forward evaluation across chronological folds."""

    fold_results: list[BacktestResult]
    train_win_rates: list[float]
    fold_count: int
    avg_win_rate: float
    std_win_rate: float
    avg_pnl: float
    std_pnl: float
    avg_sharpe: float
    is_overfit: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "fold_results": [fold.to_dict() for fold in self.fold_results],
            "train_win_rates": list(self.train_win_rates),
            "fold_count": self.fold_count,
            "avg_win_rate": self.avg_win_rate,
            "std_win_rate": self.std_win_rate,
            "avg_pnl": self.avg_pnl,
            "std_pnl": self.std_pnl,
            "avg_sharpe": self.avg_sharpe,
            "is_overfit": self.is_overfit,
        }
