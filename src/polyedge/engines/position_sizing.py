"""
Fractional-Kelly position sizing.

Stake size is the Kelly fraction scaled down by a configurable fraction,
the signal's confidence and the market regime, capped at 25% of bankroll
and clamped into [min_size, max_size].
"""

from polyedge.core.constants import (
    DEFAULT_KELLY_FRACTION,
    DEFAULT_MIN_SIZE,
    DEFAULT_SIZING_CONFIDENCE,
    MAX_BANKROLL_RISK_PER_TRADE,
)
from polyedge.core.enums import Regime, Side
from polyedge.core.models.risk import PositionSizeResult, PositionSizingParams
from polyedge.core.types.numeric import clamp, is_finite

REASON_INVALID_INPUTS = "invalid_inputs"
REASON_NEGATIVE_EDGE = "negative_edge"
REASON_KELLY_SIZED = "kelly_sized"


def confidence_multiplier(confidence: float) -> float:
    """Scale factor for signal confidence in [0, 1]."""
    if confidence >= 0.8:
        return 1.2
    if confidence >= 0.5:
        return 1.0
    return 0.6


def regime_multiplier(regime: Regime | str | None, side: Side | None) -> float:
    """Scale factor for the market regime.

    Accepts the detector's regimes as well as the generic TREND,
    TREND_ALIGNED and TREND_OPPOSED labels. Directional trends count as
    aligned when no side is given; unknown labels are neutral.
    """
    if not regime:
        return 1.0

    label = str(regime).upper()
    fixed = {
        "CHOP": 0.5,
        "RANGE": 0.8,
        "TREND": 1.1,
        "TREND_ALIGNED": 1.1,
        "TREND_OPPOSED": 0.6,
    }
    if label in fixed:
        return fixed[label]

    if label in (Regime.TREND_UP, Regime.TREND_DOWN):
        if side is None:
            return 1.1
        return 1.1 if Regime(label).is_aligned_with(side) else 0.6

    return 1.0


def calculate_kelly_position_size(params: PositionSizingParams) -> PositionSizeResult:
    """Size a position with fractional Kelly.

    Args:
        params: Win probability, payouts, bankroll and sizing bounds

    Returns:
        PositionSizeResult tagged invalid_inputs, negative_edge or kelly_sized.
        Both rejection reasons carry size 0; only a sized result is clamped
        into [min_size, max_size].

    Examples:
        >>> result = calculate_kelly_position_size(PositionSizingParams(
        ...     win_probability=0.7, avg_win_payout=0.4, avg_loss_payout=0.6,
        ...     bankroll=100, max_size=100, confidence=0.5))
        >>> round(result.size, 6)
        12.5
    """
    min_size = (
        max(0.0, float(params.min_size)) if is_finite(params.min_size) else DEFAULT_MIN_SIZE
    )
    max_size = max(min_size, float(params.max_size)) if is_finite(params.max_size) else min_size
    bankroll = max(0.0, float(params.bankroll)) if is_finite(params.bankroll) else 0.0

    p = params.win_probability
    avg_win = params.avg_win_payout
    avg_loss = params.avg_loss_payout

    if not (is_finite(p) and is_finite(avg_win) and is_finite(avg_loss)):
        return PositionSizeResult(
            size=0.0, raw_kelly=0.0, adjusted_kelly=0.0, reason=REASON_INVALID_INPUTS
        )
    if avg_win <= 0 or avg_loss <= 0:
        return PositionSizeResult(
            size=0.0, raw_kelly=0.0, adjusted_kelly=0.0, reason=REASON_INVALID_INPUTS
        )

    p_clamped = clamp(float(p), 0.0, 1.0)
    q = 1.0 - p_clamped
    b = avg_win / avg_loss
    raw_kelly = (b * p_clamped - q) / b

    if not is_finite(raw_kelly) or raw_kelly <= 0:
        return PositionSizeResult(
            size=0.0, raw_kelly=raw_kelly, adjusted_kelly=0.0, reason=REASON_NEGATIVE_EDGE
        )

    kelly_fraction = (
        clamp(float(params.kelly_fraction), 0.0, 1.0)
        if is_finite(params.kelly_fraction)
        else DEFAULT_KELLY_FRACTION
    )
    confidence = (
        clamp(float(params.confidence), 0.0, 1.0)
        if is_finite(params.confidence)
        else DEFAULT_SIZING_CONFIDENCE
    )

    adjusted_raw = (
        raw_kelly
        * kelly_fraction
        * confidence_multiplier(confidence)
        * regime_multiplier(params.regime, params.side)
    )
    adjusted_kelly = clamp(adjusted_raw, 0.0, MAX_BANKROLL_RISK_PER_TRADE)
    size = clamp(adjusted_kelly * bankroll, min_size, max_size)

    return PositionSizeResult(
        size=size, raw_kelly=raw_kelly, adjusted_kelly=adjusted_kelly, reason=REASON_KELLY_SIZED
    )
