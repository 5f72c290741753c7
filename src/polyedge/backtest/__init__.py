"""
Strategy evaluation procedures built on the backtest engine.
"""

from .ab_test import chi_squared_2x2, chi_squared_p_value, run_ab_test
from .analysis import StrategyWeakness, generate_recommendations, identify_weaknesses
from .cross_validation import cross_validate
from .engine import BacktestEngine
from .optimizer import ParameterGrid, iter_combinations, optimize_parameters

__all__ = [
    "BacktestEngine",
    "run_ab_test",
    "chi_squared_2x2",
    "chi_squared_p_value",
    "ParameterGrid",
    "iter_combinations",
    "optimize_parameters",
    "cross_validate",
    "StrategyWeakness",
    "identify_weaknesses",
    "generate_recommendations",
]
