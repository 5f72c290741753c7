"""
Position sizing and risk calculator models.

Calculators never raise on bad numbers; they return these value objects
with a reason tag and zeroed or neutral fields instead.
"""

from dataclasses import dataclass

from polyedge.core.constants import (
    DEFAULT_BASE_PROFIT_PERCENT,
    DEFAULT_MAX_STOP_PERCENT,
    DEFAULT_MIN_PROFIT_PERCENT,
    DEFAULT_MIN_STOP_PERCENT,
    DEFAULT_PROFIT_DECAY_RATE,
    DEFAULT_VOLATILITY_MULTIPLIER,
)
from polyedge.core.enums import Regime, Side


@dataclass
class PositionSizingParams:
    """Inputs to fractional-Kelly position sizing."""

    win_probability: float
    avg_win_payout: float
    avg_loss_payout: float
    bankroll: float
    max_size: float
    min_size: float | None = None
    kelly_fraction: float | None = None
    confidence: float | None = None
    regime: Regime | str | None = None
    side: Side | None = None


@dataclass(frozen=True)
class PositionSizeResult:
    """Sized stake plus the Kelly fractions behind it."""

    size: float
    raw_kelly: float
    adjusted_kelly: float
    reason: str


@dataclass
class StopConfig:
    """Volatility-scaled stop-loss settings."""

    volatility_multiplier: float = DEFAULT_VOLATILITY_MULTIPLIER
    max_stop_percent: float = DEFAULT_MAX_STOP_PERCENT
    min_stop_percent: float = DEFAULT_MIN_STOP_PERCENT
    enable_volatility_stop: bool = True


@dataclass(frozen=True)
class StopLevel:
    """Stop price and distance as a fraction of entry."""

    stop_price: float
    stop_percent: float
    reason: str


@dataclass
class TakeProfitConfig:
    """Take-profit target that decays with time in the trade."""

    base_profit_percent: float = DEFAULT_BASE_PROFIT_PERCENT
    decay_rate: float = DEFAULT_PROFIT_DECAY_RATE
    min_profit_percent: float = DEFAULT_MIN_PROFIT_PERCENT
    enable_take_profit: bool = True


@dataclass(frozen=True)
class TakeProfitTarget:
    target_price: float
    profit_percent: float


@dataclass(frozen=True)
class TrailingStopState:
    """Trailing stop state owned by the caller and re-supplied every tick."""

    entry_price: float
    side: Side
    highest_price: float
    lowest_price: float
    trailing_percent: float
    activated: bool = False
    activation_percent: float = 0.0

    @classmethod
    def open(
        cls,
        entry_price: float,
        side: Side,
        trailing_percent: float,
        activation_percent: float = 0.0,
    ) -> "TrailingStopState":
        """Initial state for a freshly entered position."""
        return cls(
            entry_price=entry_price,
            side=side,
            highest_price=entry_price,
            lowest_price=entry_price,
            trailing_percent=trailing_percent,
            activated=False,
            activation_percent=activation_percent,
        )


@dataclass(frozen=True)
class TrailingStopUpdate:
    """Result of one trailing-stop tick; stop_price is None until activated."""

    stop_price: float | None
    updated_state: TrailingStopState
