"""
Shared factories for strategy and signal fixtures.
"""

from collections.abc import Callable
from typing import Any

import pytest

from polyedge.core.enums import Phase, Regime, Side
from polyedge.core.models.quality import HistoricalSignal, SignalFeatures
from polyedge.core.models.signal import BacktestSignal
from polyedge.core.models.strategy import BlendWeights, StrategyConfig


def build_strategy(**overrides: Any) -> StrategyConfig:
    """Permissive strategy used across engine tests."""
    values: dict[str, Any] = {
        "edge_threshold_early": 0.06,
        "edge_threshold_mid": 0.08,
        "edge_threshold_late": 0.1,
        "min_prob_early": 0.52,
        "min_prob_mid": 0.55,
        "min_prob_late": 0.6,
        "blend_weights": BlendWeights(vol=0.5, ta=0.5),
        "regime_multipliers": {
            "CHOP": 1.3,
            "RANGE": 1.0,
            "TREND_ALIGNED": 0.8,
            "TREND_OPPOSED": 1.2,
        },
    }
    values.update(overrides)
    return StrategyConfig(**values)


def build_signal(**overrides: Any) -> BacktestSignal:
    """Settled, winning UP signal in a RANGE regime, MID phase."""
    values: dict[str, Any] = {
        "timestamp": "2026-01-01T00:00:00.000Z",
        "market_id": "BTC",
        "side": Side.UP,
        "phase": Phase.MID,
        "regime": Regime.RANGE,
        "edge": 0.15,
        "effective_edge": 0.15,
        "model_up": 0.65,
        "model_down": 0.35,
        "market_up": 0.46,
        "market_down": 0.54,
        "confidence": 0.7,
        "volatility_15m": 0.004,
        "price_to_beat": 100.0,
        "final_price": 101.0,
        "orderbook_imbalance": 0.1,
        "vwap_slope": 0.05,
        "rsi": 55.0,
    }
    values.update(overrides)
    return BacktestSignal(**values)


def build_signals(
    count: int, builder: Callable[[int], dict[str, Any]] = lambda index: {}
) -> list[BacktestSignal]:
    """count signals, five per calendar day, customised per index."""
    return [
        build_signal(
            timestamp=f"2026-01-{1 + index // 5:02d}T00:00:00.000Z",
            **builder(index),
        )
        for index in range(count)
    ]


def build_features(**overrides: Any) -> SignalFeatures:
    values: dict[str, Any] = {
        "market_id": "BTC",
        "edge": 0.12,
        "confidence": 0.62,
        "volatility_15m": 0.005,
        "phase": Phase.MID,
        "regime": Regime.RANGE,
        "model_up": 0.58,
        "orderbook_imbalance": 0.1,
        "rsi": 54.0,
        "vwap_slope": 0.03,
    }
    values.update(overrides)
    return SignalFeatures(**values)


def build_historical(**overrides: Any) -> HistoricalSignal:
    values: dict[str, Any] = {
        "market_id": "BTC",
        "edge": 0.12,
        "confidence": 0.62,
        "volatility_15m": 0.005,
        "phase": Phase.MID,
        "regime": Regime.RANGE,
        "model_up": 0.58,
        "orderbook_imbalance": 0.1,
        "rsi": 54.0,
        "vwap_slope": 0.03,
        "won": True,
        "pnl": 1.0,
        "timestamp": 1_700_000_000_000.0,
    }
    values.update(overrides)
    return HistoricalSignal(**values)


@pytest.fixture
def make_strategy() -> Callable[..., StrategyConfig]:
    return build_strategy


@pytest.fixture
def make_signal() -> Callable[..., BacktestSignal]:
    return build_signal


@pytest.fixture
def make_signals() -> Callable[..., list[BacktestSignal]]:
    return build_signals


@pytest.fixture
def make_features() -> Callable[..., SignalFeatures]:
    return build_features


@pytest.fixture
def make_historical() -> Callable[..., HistoricalSignal]:
    return build_historical
