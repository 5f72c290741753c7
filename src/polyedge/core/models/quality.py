"""
Signal-quality model value types.
"""

from dataclasses import dataclass

from polyedge.core.enums import Phase, QualityConfidence, Regime


@dataclass(frozen=True)
class SignalFeatures:
    """Feature vector describing a candidate signal."""

    market_id: str
    edge: float
    confidence: float
    volatility_15m: float
    phase: Phase
    regime: Regime | None
    model_up: float
    orderbook_imbalance: float | None = None
    rsi: float | None = None
    vwap_slope: float | None = None


@dataclass(frozen=True)
class HistoricalSignal(SignalFeatures):
    """A past signal with its realised outcome.

    timestamp is epoch milliseconds.
    """

    won: bool = False
    pnl: float = 0.0
    timestamp: float = 0.0


@dataclass(frozen=True)
class SignalQualityResult:
    predicted_win_rate: float
    sample_size: int
    avg_similarity: float
    confidence: QualityConfidence


@dataclass(frozen=True)
class GroupPerformance:
    """Aggregate outcome of recorded signals matching a filter."""

    count: int
    win_rate: float
    avg_edge: float
    avg_pnl: float
