"""
Pydantic schemas for signal records and strategy config files.

Stored records use camelCase keys; snake_case is accepted too. Schemas are
the only place raw external values are coerced into domain types.
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from polyedge.core.enums import Phase, Regime, RegimeMultiplierKey, Side
from polyedge.core.models.signal import BacktestSignal
from polyedge.core.models.strategy import (
    DEFAULT_STRATEGY,
    BlendWeights,
    MarketPerformance,
    StrategyConfig,
)


def _blank_to_none(value: Any) -> Any:
    """Map NaN, empty strings and "null" to None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and value.strip().lower() in ("", "null", "none", "nan"):
        return None
    return value


class CamelModel(BaseModel):
    """Base schema accepting camelCase aliases or field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BacktestSignalSchema(CamelModel):
    """One stored signal observation."""

    timestamp: str
    market_id: str
    side: Side
    phase: Phase
    regime: Regime | None = None
    edge: float
    effective_edge: float = Field(default=math.nan)
    model_up: float
    model_down: float
    market_up: float
    market_down: float
    confidence: float = 0.0
    volatility_15m: float = Field(default=0.0, alias="volatility15m")
    price_to_beat: float
    final_price: float | None = None
    orderbook_imbalance: float | None = None
    vwap_slope: float | None = None
    rsi: float | None = None

    @field_validator("timestamp", "market_id", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Accept any scalar as text."""
        v = _blank_to_none(v)
        if v is None:
            raise ValueError("value is required")
        return str(v).strip()

    @field_validator("side", mode="before")
    @classmethod
    def parse_side(cls, v: Any) -> Side:
        return Side.from_string(v)

    @field_validator("phase", mode="before")
    @classmethod
    def parse_phase(cls, v: Any) -> Phase:
        return Phase.from_string(v)

    @field_validator("regime", mode="before")
    @classmethod
    def parse_regime(cls, v: Any) -> Regime | None:
        v = _blank_to_none(v)
        return None if v is None else Regime.from_string(v)

    @field_validator("final_price", "orderbook_imbalance", "vwap_slope", "rsi", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Missing optional numbers (null, NaN, empty cell) become None."""
        return _blank_to_none(v)

    @field_validator("effective_edge", mode="before")
    @classmethod
    def blank_to_nan(cls, v: Any) -> Any:
        """A missing effective edge stays non-finite so the raw edge is used."""
        v = _blank_to_none(v)
        return math.nan if v is None else v

    def to_domain(self) -> BacktestSignal:
        """Convert to the engine's signal dataclass."""
        return BacktestSignal(**self.model_dump(by_alias=False))


class BlendWeightsSchema(CamelModel):
    vol: float | None = None
    ta: float | None = None


class MarketPerformanceSchema(CamelModel):
    win_rate: float
    edge_multiplier: float = 1.0


class StrategyConfigSchema(CamelModel):
    """Strategy config file contents; omitted fields keep the base config's values."""

    edge_threshold_early: float | None = None
    edge_threshold_mid: float | None = None
    edge_threshold_late: float | None = None
    min_prob_early: float | None = None
    min_prob_mid: float | None = None
    min_prob_late: float | None = None
    blend_weights: BlendWeightsSchema | None = None
    regime_multipliers: dict[RegimeMultiplierKey, float] | None = None
    skip_markets: list[str] | None = None
    min_confidence: float | None = None
    market_performance: dict[str, MarketPerformanceSchema] | None = None

    @field_validator("regime_multipliers", mode="before")
    @classmethod
    def upper_case_keys(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(key).strip().upper(): value for key, value in v.items()}
        return v

    def to_domain(self, base: StrategyConfig = DEFAULT_STRATEGY) -> StrategyConfig:
        """Merge the provided fields over a base config.

        Returns:
            A new StrategyConfig; the base is never modified
        """
        config = base.clone()
        provided = self.model_fields_set

        for name in (
            "edge_threshold_early",
            "edge_threshold_mid",
            "edge_threshold_late",
            "min_prob_early",
            "min_prob_mid",
            "min_prob_late",
        ):
            value = getattr(self, name)
            if name in provided and value is not None:
                setattr(config, name, value)

        if self.blend_weights is not None:
            weights = self.blend_weights
            config.blend_weights = BlendWeights(
                vol=config.blend_weights.vol if weights.vol is None else weights.vol,
                ta=config.blend_weights.ta if weights.ta is None else weights.ta,
            )
        if self.regime_multipliers:
            config.regime_multipliers.update(self.regime_multipliers)
        if self.skip_markets is not None:
            config.skip_markets = list(self.skip_markets)
        if "min_confidence" in provided:
            config.min_confidence = self.min_confidence
        if self.market_performance is not None:
            config.market_performance = {
                market: MarketPerformance(perf.win_rate, perf.edge_multiplier)
                for market, perf in self.market_performance.items()
            }
        return config
