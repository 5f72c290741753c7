"""
Grid-search parameter optimizer.

Enumerates the cartesian product of candidate values over the ten tunable
strategy fields and backtests every combination against the same signals.
"""

from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from itertools import product
from typing import Any

from loguru import logger

from polyedge.core.constants import DEFAULT_TRADE_SIZE
from polyedge.core.enums import OptimizationMetric, RegimeMultiplierKey
from polyedge.core.exceptions.backtest import ValidationError
from polyedge.core.models.backtest import BacktestResult, OptimizationEntry, OptimizationResult
from polyedge.core.models.signal import BacktestSignal
from polyedge.core.models.strategy import StrategyConfig
from polyedge.core.utils.decorators import log_evaluation
from polyedge.core.utils.validation import validate_candidates, validate_positive

from .engine import BacktestEngine

# Threshold dimensions in enumeration order; regime multipliers follow
THRESHOLD_FIELDS = (
    "edge_threshold_early",
    "edge_threshold_mid",
    "edge_threshold_late",
    "min_prob_early",
    "min_prob_mid",
    "min_prob_late",
)
REGIME_KEYS = (
    RegimeMultiplierKey.CHOP,
    RegimeMultiplierKey.RANGE,
    RegimeMultiplierKey.TREND_ALIGNED,
    RegimeMultiplierKey.TREND_OPPOSED,
)

_CAMEL_FIELDS = {
    "edgeThresholdEarly": "edge_threshold_early",
    "edgeThresholdMid": "edge_threshold_mid",
    "edgeThresholdLate": "edge_threshold_late",
    "minProbEarly": "min_prob_early",
    "minProbMid": "min_prob_mid",
    "minProbLate": "min_prob_late",
    "regimeMultipliers": "regime_multipliers",
}


@dataclass
class ParameterGrid:
    """Candidate values per tunable field; None or empty means "keep the base value"."""

    edge_threshold_early: list[float] | None = None
    edge_threshold_mid: list[float] | None = None
    edge_threshold_late: list[float] | None = None
    min_prob_early: list[float] | None = None
    min_prob_mid: list[float] | None = None
    min_prob_late: list[float] | None = None
    regime_multipliers: dict[RegimeMultiplierKey, list[float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.regime_multipliers = {
            RegimeMultiplierKey(key): values for key, values in self.regime_multipliers.items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParameterGrid":
        """Build a grid from a dict with camelCase or snake_case keys.

        Raises:
            ValidationError: If a key is not a tunable field
        """
        values: dict[str, Any] = {}
        for key, candidates in data.items():
            name = _CAMEL_FIELDS.get(key, key)
            if name not in THRESHOLD_FIELDS and name != "regime_multipliers":
                raise ValidationError(f"Unknown grid parameter: {key}")
            values[name] = dict(candidates) if name == "regime_multipliers" else candidates
        try:
            return cls(**values)
        except ValueError as e:
            raise ValidationError(f"Invalid regime multiplier key in grid: {e}") from e

    def dimensions(self, base: StrategyConfig) -> list[list[float]]:
        """Candidate lists for all ten dimensions, defaulting to the base config's values.

        Raises:
            ValidationError: If any candidate is not a finite number, or a regime
                multiplier the grid leaves out is missing from the base config
        """
        dims = []
        for name in THRESHOLD_FIELDS:
            candidates = getattr(self, name)
            if candidates:
                dims.append(validate_candidates(candidates, name))
            else:
                dims.append([getattr(base, name)])
        for key in REGIME_KEYS:
            candidates = self.regime_multipliers.get(key)
            if candidates:
                dims.append(validate_candidates(candidates, f"regime_multipliers.{key.value}"))
            elif key in base.regime_multipliers:
                dims.append([base.regime_multipliers[key]])
            else:
                raise ValidationError(f"Missing regime multiplier: {key.value}")
        return dims

    def size(self, base: StrategyConfig) -> int:
        """Number of combinations the grid expands to."""
        total = 1
        for candidates in self.dimensions(base):
            total *= len(candidates)
        return total


def iter_combinations(base: StrategyConfig, grid: ParameterGrid) -> Iterator[StrategyConfig]:
    """Yield one config per grid combination, the last dimension varying fastest."""
    for combo in product(*grid.dimensions(base)):
        thresholds = dict(zip(THRESHOLD_FIELDS, combo[: len(THRESHOLD_FIELDS)]))
        multipliers = dict(base.regime_multipliers)
        multipliers.update(zip(REGIME_KEYS, combo[len(THRESHOLD_FIELDS) :]))
        yield base.with_overrides(**thresholds, regime_multipliers=multipliers)


def _evaluate(
    config: StrategyConfig, signals: Sequence[BacktestSignal], trade_size: float
) -> BacktestResult:
    return BacktestEngine(config, trade_size).run(signals)


def _evaluate_parallel(
    configs: list[StrategyConfig],
    signals: Sequence[BacktestSignal],
    trade_size: float,
    max_workers: int,
) -> list[BacktestResult]:
    results: list[BacktestResult | None] = [None] * len(configs)
    signal_list = list(signals)
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(_evaluate, config, signal_list, trade_size): index
            for index, config in enumerate(configs)
        }
        for future in as_completed(future_to_index):
            results[future_to_index[future]] = future.result()
    return results  # type: ignore[return-value]


@log_evaluation
def optimize_parameters(
    base_config: StrategyConfig,
    grid: ParameterGrid | Mapping[str, Any],
    signals: Sequence[BacktestSignal],
    sort_by: OptimizationMetric | str = OptimizationMetric.SHARPE_RATIO,
    trade_size: float = DEFAULT_TRADE_SIZE,
    max_workers: int | None = None,
) -> OptimizationResult:
    """Backtest every grid combination and rank them by a metric.

    Args:
        base_config: Values for every dimension the grid leaves out
        grid: ParameterGrid or an equivalent dict
        signals: Historical signals, only read
        sort_by: sharpe_ratio (default), win_rate or total_pnl
        trade_size: Stake per trade
        max_workers: Run combinations in that many worker processes when above 1

    Returns:
        OptimizationResult sorted best first; ties keep enumeration order

    Raises:
        ValidationError: If sort_by is not a supported metric, the grid is malformed
            or max_workers is not positive
    """
    try:
        metric = OptimizationMetric.parse(sort_by)
    except ValueError as e:
        raise ValidationError(f"Unsupported sort metric: {sort_by}") from e

    if max_workers is not None:
        max_workers = int(validate_positive(max_workers, "max_workers"))

    if not isinstance(grid, ParameterGrid):
        grid = ParameterGrid.from_dict(grid)

    base = base_config.clone()
    configs = list(iter_combinations(base, grid))
    logger.info(f"Optimizing over {len(configs)} combinations by {metric.value}")

    if max_workers is not None and max_workers > 1 and len(configs) > 1:
        results = _evaluate_parallel(configs, signals, trade_size, max_workers)
    else:
        engine = BacktestEngine(base, trade_size)
        results = [engine.run(signals, config) for config in configs]

    entries = [OptimizationEntry(config=c, result=r) for c, r in zip(configs, results)]
    entries = sorted(entries, key=lambda entry: entry.result.metric(metric.value), reverse=True)

    return OptimizationResult(
        best_config=entries[0].config,
        best_result=entries[0].result,
        all_results=entries,
        total_combinations=len(entries),
    )
