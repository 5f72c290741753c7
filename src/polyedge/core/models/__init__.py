"""
Domain models for strategy evaluation.
"""

from .backtest import (
    ABTestResult,
    BacktestResult,
    BucketStats,
    CrossValidationResult,
    OptimizationEntry,
    OptimizationResult,
)
from .quality import GroupPerformance, HistoricalSignal, SignalFeatures, SignalQualityResult
from .risk import (
    PositionSizeResult,
    PositionSizingParams,
    StopConfig,
    StopLevel,
    TakeProfitConfig,
    TakeProfitTarget,
    TrailingStopState,
    TrailingStopUpdate,
)
from .signal import BacktestSignal
from .strategy import DEFAULT_STRATEGY, BlendWeights, MarketPerformance, StrategyConfig

__all__ = [
    "StrategyConfig",
    "BlendWeights",
    "MarketPerformance",
    "DEFAULT_STRATEGY",
    "BacktestSignal",
    "BacktestResult",
    "BucketStats",
    "ABTestResult",
    "OptimizationEntry",
    "OptimizationResult",
    "CrossValidationResult",
    "PositionSizingParams",
    "PositionSizeResult",
    "StopConfig",
    "StopLevel",
    "TakeProfitConfig",
    "TakeProfitTarget",
    "TrailingStopState",
    "TrailingStopUpdate",
    "SignalFeatures",
    "HistoricalSignal",
    "SignalQualityResult",
    "GroupPerformance",
]
