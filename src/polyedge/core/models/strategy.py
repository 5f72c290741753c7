"""
Strategy configuration model.

A StrategyConfig is immutable per run: every consumer clones it before use
so that an engine run can never mutate caller state.
"""

import copy
from dataclasses import dataclass, field, fields, replace
from typing import Any

from polyedge.core.constants import (
    DEFAULT_EDGE_THRESHOLD_EARLY,
    DEFAULT_EDGE_THRESHOLD_LATE,
    DEFAULT_EDGE_THRESHOLD_MID,
    DEFAULT_MIN_PROB_EARLY,
    DEFAULT_MIN_PROB_LATE,
    DEFAULT_MIN_PROB_MID,
    DEFAULT_REGIME_MULTIPLIERS,
)
from polyedge.core.enums import Phase, Regime, RegimeMultiplierKey, Side
from polyedge.core.exceptions.backtest import InvalidThresholdError, ValidationError
from polyedge.core.types.numeric import is_finite


@dataclass
class BlendWeights:
    """Blend of volatility-implied and technical-analysis probabilities."""

    vol: float = 0.5
    ta: float = 0.5

    def total(self) -> float:
        """Sum of both weights."""
        return self.vol + self.ta

    def is_normalized(self, tolerance: float = 0.01) -> bool:
        """Check the weights sum to approximately 1."""
        return abs(self.total() - 1.0) <= tolerance


@dataclass
class MarketPerformance:
    """Market-specific performance override."""

    win_rate: float
    edge_multiplier: float = 1.0


def default_regime_multipliers() -> dict[RegimeMultiplierKey, float]:
    """Fresh copy of the default regime multipliers."""
    return {RegimeMultiplierKey(key): value for key, value in DEFAULT_REGIME_MULTIPLIERS.items()}


@dataclass
class StrategyConfig:
    """Thresholds and multipliers that decide whether a signal becomes a trade."""

    edge_threshold_early: float = DEFAULT_EDGE_THRESHOLD_EARLY
    edge_threshold_mid: float = DEFAULT_EDGE_THRESHOLD_MID
    edge_threshold_late: float = DEFAULT_EDGE_THRESHOLD_LATE
    min_prob_early: float = DEFAULT_MIN_PROB_EARLY
    min_prob_mid: float = DEFAULT_MIN_PROB_MID
    min_prob_late: float = DEFAULT_MIN_PROB_LATE
    blend_weights: BlendWeights = field(default_factory=BlendWeights)
    regime_multipliers: dict[RegimeMultiplierKey, float] = field(
        default_factory=default_regime_multipliers
    )
    skip_markets: list[str] = field(default_factory=list)
    min_confidence: float | None = None
    market_performance: dict[str, MarketPerformance] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize regime multiplier keys to RegimeMultiplierKey."""
        self.regime_multipliers = {
            RegimeMultiplierKey(key): value for key, value in self.regime_multipliers.items()
        }

    def edge_threshold(self, phase: Phase | str) -> float | None:
        """Base edge threshold for a phase, None for an unknown phase."""
        return {
            Phase.EARLY: self.edge_threshold_early,
            Phase.MID: self.edge_threshold_mid,
            Phase.LATE: self.edge_threshold_late,
        }.get(phase)  # type: ignore[call-overload]

    def min_prob(self, phase: Phase | str) -> float | None:
        """Minimum model probability for a phase, None for an unknown phase."""
        return {
            Phase.EARLY: self.min_prob_early,
            Phase.MID: self.min_prob_mid,
            Phase.LATE: self.min_prob_late,
        }.get(phase)  # type: ignore[call-overload]

    def regime_multiplier(self, regime: Regime | str | None, side: Side) -> float:
        """Threshold multiplier for a regime/side pair."""
        key = RegimeMultiplierKey.for_trade(regime, side)
        return self.regime_multipliers.get(key, float("nan"))

    def clone(self) -> "StrategyConfig":
        """Deep copy, including nested weights, multipliers and lists."""
        return copy.deepcopy(self)

    def with_overrides(self, **changes: Any) -> "StrategyConfig":
        """Clone with top-level fields replaced."""
        return replace(self.clone(), **changes)

    def validate(self) -> "StrategyConfig":
        """Check every threshold is finite and every multiplier non-negative.

        Returns:
            self, for chaining

        Raises:
            InvalidThresholdError: If a threshold or multiplier is invalid
            ValidationError: If a regime multiplier is missing
        """
        for name in (
            "edge_threshold_early",
            "edge_threshold_mid",
            "edge_threshold_late",
            "min_prob_early",
            "min_prob_mid",
            "min_prob_late",
        ):
            value = getattr(self, name)
            if not is_finite(value):
                raise InvalidThresholdError(name, value)

        if self.min_confidence is not None and not is_finite(self.min_confidence):
            raise InvalidThresholdError("min_confidence", self.min_confidence)

        missing = [key.value for key in RegimeMultiplierKey if key not in self.regime_multipliers]
        if missing:
            raise ValidationError(f"Missing regime multipliers: {', '.join(missing)}")

        for key, value in self.regime_multipliers.items():
            if not is_finite(value) or value < 0:
                raise InvalidThresholdError(
                    f"regime_multipliers.{key.value}", value, "a finite non-negative number"
                )

        for name in ("vol", "ta"):
            value = getattr(self.blend_weights, name)
            if not is_finite(value):
                raise InvalidThresholdError(f"blend_weights.{name}", value)

        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a plain dictionary."""
        return {
            "edge_threshold_early": self.edge_threshold_early,
            "edge_threshold_mid": self.edge_threshold_mid,
            "edge_threshold_late": self.edge_threshold_late,
            "min_prob_early": self.min_prob_early,
            "min_prob_mid": self.min_prob_mid,
            "min_prob_late": self.min_prob_late,
            "blend_weights": {"vol": self.blend_weights.vol, "ta": self.blend_weights.ta},
            "regime_multipliers": {key.value: value for key, value in self.regime_multipliers.items()},
            "skip_markets": list(self.skip_markets),
            "min_confidence": self.min_confidence,
            "market_performance": {
                market: {"win_rate": perf.win_rate, "edge_multiplier": perf.edge_multiplier}
                for market, perf in self.market_performance.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyConfig":
        """Build a config from a snake_case dictionary produced by to_dict."""
        known = {f.name for f in fields(cls)}
        values = {name: value for name, value in data.items() if name in known}

        if isinstance(values.get("blend_weights"), dict):
            values["blend_weights"] = BlendWeights(**values["blend_weights"])
        if "regime_multipliers" in values:
            merged = default_regime_multipliers()
            merged.update(
                {RegimeMultiplierKey(k): v for k, v in values["regime_multipliers"].items()}
            )
            values["regime_multipliers"] = merged
        if "market_performance" in values:
            values["market_performance"] = {
                market: perf if isinstance(perf, MarketPerformance) else MarketPerformance(**perf)
                for market, perf in values["market_performance"].items()
            }
        if "skip_markets" in values:
            values["skip_markets"] = list(values["skip_markets"] or [])

        return cls(**values)


DEFAULT_STRATEGY = StrategyConfig()
