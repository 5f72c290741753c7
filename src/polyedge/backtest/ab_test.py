"""
A/B comparison of two strategies over the same signals.

Significance comes from a chi-squared test on the 2x2 table of
strategy against win/loss, without Yates correction.
"""

import math
from collections.abc import Sequence

from polyedge.core.constants import DEFAULT_TRADE_SIZE, SIGNIFICANCE_LEVEL
from polyedge.core.models.backtest import ABTestResult
from polyedge.core.models.signal import BacktestSignal
from polyedge.core.models.strategy import StrategyConfig
from polyedge.core.types.numeric import erf, is_finite
from polyedge.core.utils.decorators import log_evaluation

from .engine import BacktestEngine

ContingencyTable = tuple[tuple[float, float], tuple[float, float]]


def chi_squared_2x2(table: ContingencyTable) -> float:
    """Pearson chi-squared statistic of a 2x2 contingency table.

    Args:
        table: ((wins_a, losses_a), (wins_b, losses_b))

    Returns:
        Sum of (observed - expected)^2 / expected over cells with a
        non-zero expected count; 0 for an empty table
    """
    row_totals = [sum(row) for row in table]
    col_totals = [table[0][col] + table[1][col] for col in range(2)]
    grand_total = sum(row_totals)
    if grand_total == 0:
        return 0.0

    chi_squared = 0.0
    for row in range(2):
        for col in range(2):
            expected = row_totals[row] * col_totals[col] / grand_total
            if expected == 0:
                continue
            chi_squared += (table[row][col] - expected) ** 2 / expected
    return chi_squared


def chi_squared_p_value(chi_squared: float) -> float:
    """Upper-tail p-value of a chi-squared statistic with one degree of freedom.

    Examples:
        >>> chi_squared_p_value(0.0)
        1.0
    """
    if not is_finite(chi_squared) or chi_squared <= 0:
        return 1.0
    return 1.0 - erf(math.sqrt(chi_squared / 2))


@log_evaluation
def run_ab_test(
    config_a: StrategyConfig,
    config_b: StrategyConfig,
    signals: Sequence[BacktestSignal],
    trade_size: float = DEFAULT_TRADE_SIZE,
) -> ABTestResult:
    """Backtest two strategies over the same signals and test the difference.

    Args:
        config_a: First strategy
        config_b: Second strategy
        signals: Shared historical signals
        trade_size: Stake per trade for both runs

    Returns:
        ABTestResult with both results, A minus B deltas and the chi-squared test
    """
    result_a = BacktestEngine(config_a, trade_size).run(signals)
    result_b = BacktestEngine(config_b, trade_size).run(signals)

    table: ContingencyTable = (
        (result_a.wins, result_a.losses),
        (result_b.wins, result_b.losses),
    )
    chi_squared = chi_squared_2x2(table)
    p_value = chi_squared_p_value(chi_squared)

    return ABTestResult(
        strategy_a=result_a,
        strategy_b=result_b,
        win_rate_diff=result_a.win_rate - result_b.win_rate,
        pnl_diff=result_a.total_pnl - result_b.total_pnl,
        sharpe_diff=result_a.sharpe_ratio - result_b.sharpe_ratio,
        chi_squared=chi_squared,
        p_value=p_value,
        is_significant=p_value < SIGNIFICANCE_LEVEL,
    )
