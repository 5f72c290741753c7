"""
Market regime enumerations.

Regimes classify the underlying asset's recent price action; strategy
configs key their threshold multipliers on a coarser set of labels.
"""

from enum import StrEnum

from .sides import Side


class Regime(StrEnum):
    """Detected market regime for the underlying asset."""

    TREND_UP = "TREND_UP"
    TREND_DOWN = "TREND_DOWN"
    RANGE = "RANGE"
    CHOP = "CHOP"

    def is_aligned_with(self, side: Side) -> bool:
        """Check if a trade side follows the trend direction."""
        return (self == self.TREND_UP and side == Side.UP) or (
            self == self.TREND_DOWN and side == Side.DOWN
        )

    @classmethod
    def from_string(cls, value: str) -> "Regime":
        """Convert string to Regime enum, case-insensitively."""
        try:
            return cls(str(value).strip().upper())
        except ValueError as e:
            raise ValueError(
                f"Unsupported regime: {value}. Supported regimes: {', '.join(r.value for r in cls)}"
            ) from e


class RegimeMultiplierKey(StrEnum):
    """
    Keys of a strategy's regime-multiplier map.

    Trend regimes resolve to TREND_ALIGNED or TREND_OPPOSED depending on
    the trade side.
    """

    CHOP = "CHOP"
    RANGE = "RANGE"
    TREND_ALIGNED = "TREND_ALIGNED"
    TREND_OPPOSED = "TREND_OPPOSED"

    @classmethod
    def for_trade(cls, regime: "Regime | str | None", side: Side) -> "RegimeMultiplierKey":
        """
        Resolve which multiplier applies to a trade.

        Args:
            regime: Regime of the signal (unknown values count as opposed)
            side: Trade side

        Returns:
            Multiplier key for the regime/side pair
        """
        if regime == Regime.CHOP:
            return cls.CHOP
        if regime == Regime.RANGE:
            return cls.RANGE
        if (regime == Regime.TREND_UP and side == Side.UP) or (
            regime == Regime.TREND_DOWN and side == Side.DOWN
        ):
            return cls.TREND_ALIGNED
        return cls.TREND_OPPOSED
