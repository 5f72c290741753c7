"""
Stop-loss and take-profit calculators.

Pure functions over prices: a volatility-scaled stop, a trailing stop
driven by caller-owned state, and a take-profit target that decays the
longer a position is held.
"""

from dataclasses import replace

from polyedge.core.constants import (
    DEFAULT_BASE_PROFIT_PERCENT,
    DEFAULT_MAX_STOP_PERCENT,
    DEFAULT_MIN_PROFIT_PERCENT,
    DEFAULT_MIN_STOP_PERCENT,
    DEFAULT_VOLATILITY_MULTIPLIER,
)
from polyedge.core.enums import Side
from polyedge.core.models.risk import (
    StopConfig,
    StopLevel,
    TakeProfitConfig,
    TakeProfitTarget,
    TrailingStopState,
    TrailingStopUpdate,
)
from polyedge.core.types.numeric import clamp, is_finite

REASON_INVALID_ENTRY_PRICE = "invalid_entry_price"
REASON_VOLATILITY_STOP_DISABLED = "volatility_stop_disabled"


def _normalize_percent(value: float, fallback: float) -> float:
    """Non-negative percent, fallback when not finite."""
    if not is_finite(value):
        return fallback
    return max(0.0, float(value))


def _normalize_price(value: float) -> float:
    """Positive price, 0 when invalid."""
    if not is_finite(value) or value <= 0:
        return 0.0
    return float(value)


def calculate_volatility_stop(
    entry_price: float,
    side: Side,
    volatility_15m: float,
    config: StopConfig,
) -> StopLevel:
    """Place a stop at a volatility-scaled distance from entry.

    Args:
        entry_price: Fill price of the position
        side: UP stops below entry, DOWN stops above
        volatility_15m: Realized 15-minute volatility as a fraction
        config: Multiplier and min/max stop distance

    Returns:
        StopLevel; zeroed with a reason tag when the entry price is invalid
        or the stop is disabled
    """
    entry = _normalize_price(entry_price)
    if entry <= 0:
        return StopLevel(stop_price=0.0, stop_percent=0.0, reason=REASON_INVALID_ENTRY_PRICE)

    if not config.enable_volatility_stop:
        return StopLevel(stop_price=0.0, stop_percent=0.0, reason=REASON_VOLATILITY_STOP_DISABLED)

    min_stop_percent = _normalize_percent(config.min_stop_percent, DEFAULT_MIN_STOP_PERCENT)
    max_stop_percent = max(
        min_stop_percent, _normalize_percent(config.max_stop_percent, DEFAULT_MAX_STOP_PERCENT)
    )
    multiplier = _normalize_percent(config.volatility_multiplier, DEFAULT_VOLATILITY_MULTIPLIER)
    volatility = _normalize_percent(volatility_15m, 0.0)

    raw_stop_percent = volatility * multiplier
    stop_percent = clamp(raw_stop_percent, min_stop_percent, max_stop_percent)
    stop_distance = entry * stop_percent
    stop_price = entry - stop_distance if side == Side.UP else entry + stop_distance

    return StopLevel(
        stop_price=stop_price,
        stop_percent=stop_percent,
        reason=f"volatility_{raw_stop_percent * 100:.2f}pct_clamped_{stop_percent * 100:.2f}pct",
    )


def _check_activation(state: TrailingStopState, current_price: float) -> bool:
    activation_percent = _normalize_percent(state.activation_percent, 0.0)
    if state.side == Side.UP:
        return current_price >= state.entry_price * (1 + activation_percent)
    return current_price <= state.entry_price * (1 - activation_percent)


def update_trailing_stop(state: TrailingStopState, current_price: float) -> TrailingStopUpdate:
    """Advance a trailing stop by one price tick.

    The stop only exists once price has moved activation_percent in the
    position's favour; after that it stays active and trails the best
    price seen by trailing_percent.

    Args:
        state: Previous state (never modified)
        current_price: Latest price

    Returns:
        TrailingStopUpdate with the new state; an invalid price returns the
        previous state unchanged and no stop
    """
    if not is_finite(current_price) or current_price <= 0:
        return TrailingStopUpdate(stop_price=None, updated_state=state)

    trailing_percent = _normalize_percent(state.trailing_percent, 0.0)
    updated_state = replace(
        state,
        highest_price=max(state.highest_price, current_price),
        lowest_price=min(state.lowest_price, current_price),
        trailing_percent=trailing_percent,
        activated=state.activated or _check_activation(state, current_price),
    )

    if not updated_state.activated:
        return TrailingStopUpdate(stop_price=None, updated_state=updated_state)

    if state.side == Side.UP:
        stop_price = updated_state.highest_price * (1 - trailing_percent)
    else:
        stop_price = updated_state.lowest_price * (1 + trailing_percent)

    return TrailingStopUpdate(stop_price=stop_price, updated_state=updated_state)


def calculate_take_profit(
    entry_price: float,
    side: Side,
    minutes_elapsed: float,
    config: TakeProfitConfig,
) -> TakeProfitTarget | None:
    """Profit target that shrinks linearly with time held, floored at min_profit_percent.

    Returns:
        TakeProfitTarget, or None when disabled or the entry price is invalid
    """
    if not config.enable_take_profit:
        return None

    entry = _normalize_price(entry_price)
    if entry <= 0:
        return None

    base_profit_percent = _normalize_percent(config.base_profit_percent, DEFAULT_BASE_PROFIT_PERCENT)
    min_profit_percent = _normalize_percent(config.min_profit_percent, DEFAULT_MIN_PROFIT_PERCENT)
    decay_rate = _normalize_percent(config.decay_rate, 0.0)
    elapsed = max(0.0, float(minutes_elapsed)) if is_finite(minutes_elapsed) else 0.0

    profit_percent = max(min_profit_percent, base_profit_percent - elapsed * decay_rate)
    if side == Side.UP:
        target_price = entry * (1 + profit_percent)
    else:
        target_price = entry * (1 - profit_percent)

    return TakeProfitTarget(target_price=target_price, profit_percent=profit_percent)
