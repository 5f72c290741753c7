"""
Trade side enumeration.

Up/down prediction markets have exactly two outcome tokens per window.
"""

from enum import StrEnum


class Side(StrEnum):
    """
    Outcome side of a 15-minute up/down market.

    UP pays out when the window settles above the price to beat,
    DOWN when it settles at or below it.
    """

    UP = "UP"
    DOWN = "DOWN"

    @classmethod
    def from_string(cls, value: str) -> "Side":
        """
        Convert string to Side enum, with case-insensitive matching.

        Args:
            value: String representation of side ("up", "DOWN", ...)

        Returns:
            Corresponding Side enum value

        Raises:
            ValueError: If side is not supported
        """
        try:
            return cls(str(value).strip().upper())
        except ValueError as e:
            raise ValueError(
                f"Unsupported side: {value}. Supported sides: {', '.join(s.value for s in cls)}"
            ) from e
