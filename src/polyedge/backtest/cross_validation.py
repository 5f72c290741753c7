"""
Walk-forward cross-validation.

Signals are split into chronological folds. Each fold after the first is
evaluated out-of-sample while everything before it serves as the train
slice; the strategy is not refit on the train slice, its win rate is only
recorded for overfit detection.
"""

import math
from collections.abc import Sequence

from loguru import logger

from polyedge.core.constants import (
    DEFAULT_FOLDS,
    DEFAULT_TRADE_SIZE,
    MIN_FOLDS,
    OVERFIT_WIN_RATE_GAP,
)
from polyedge.core.models.backtest import BacktestResult, CrossValidationResult
from polyedge.core.models.signal import BacktestSignal
from polyedge.core.models.strategy import StrategyConfig
from polyedge.core.types.numeric import clamp, is_finite, mean, std
from polyedge.core.utils.decorators import log_evaluation

from .engine import BacktestEngine


def resolve_fold_count(folds: float, signal_count: int) -> int:
    """Floor folds and clamp it to [2, max(2, signal_count)]; non-finite means 5."""
    requested = math.floor(folds) if is_finite(folds) else DEFAULT_FOLDS
    return int(clamp(requested, MIN_FOLDS, max(MIN_FOLDS, signal_count)))


def fold_boundaries(signal_count: int, fold_count: int) -> list[int]:
    """fold_count + 1 indices evenly spanning [0, signal_count]."""
    return [i * signal_count // fold_count for i in range(fold_count + 1)]


def detect_overfit(test_win_rates: Sequence[float], train_win_rates: Sequence[float]) -> bool:
    """Flag a best fold far above the average, or train far above test."""
    if not test_win_rates:
        return False
    avg_test = mean(test_win_rates)
    if max(test_win_rates) - avg_test >= OVERFIT_WIN_RATE_GAP:
        return True
    return mean(train_win_rates) - avg_test >= OVERFIT_WIN_RATE_GAP


@log_evaluation
def cross_validate(
    config: StrategyConfig,
    signals: Sequence[BacktestSignal],
    folds: int = DEFAULT_FOLDS,
    trade_size: float = DEFAULT_TRADE_SIZE,
) -> CrossValidationResult:
    """Evaluate a strategy on successive out-of-sample folds.

    Args:
        config: Strategy under evaluation
        signals: Historical signals in chronological order
        folds: Requested fold count, clamped to the data size
        trade_size: Stake per trade

    Returns:
        CrossValidationResult with one test-set result per evaluated fold
    """
    engine = BacktestEngine(config, trade_size)
    signal_count = len(signals)
    fold_count = resolve_fold_count(folds, signal_count)
    boundaries = fold_boundaries(signal_count, fold_count)

    fold_results: list[BacktestResult] = []
    train_win_rates: list[float] = []
    for fold_index in range(1, fold_count):
        test_set = signals[boundaries[fold_index] : boundaries[fold_index + 1]]
        if not test_set:
            continue
        train_set = signals[: boundaries[fold_index]]

        train_win_rates.append(engine.run(train_set).win_rate)
        fold_results.append(engine.run(test_set))

    win_rates = [result.win_rate for result in fold_results]
    pnls = [result.total_pnl for result in fold_results]

    logger.debug(f"Cross-validation: {len(fold_results)} folds evaluated of {fold_count}")

    return CrossValidationResult(
        fold_results=fold_results,
        train_win_rates=train_win_rates,
        fold_count=fold_count,
        avg_win_rate=mean(win_rates),
        std_win_rate=std(win_rates),
        avg_pnl=mean(pnls),
        std_pnl=std(pnls),
        avg_sharpe=mean(result.sharpe_ratio for result in fold_results),
        is_overfit=detect_overfit(win_rates, train_win_rates),
    )
