"""
Window phase enumeration.

A 15-minute window is split into three entry phases, each with its own
edge and probability thresholds.
"""

from enum import StrEnum


class Phase(StrEnum):
    """Entry phase within a market window."""

    EARLY = "EARLY"
    MID = "MID"
    LATE = "LATE"

    @classmethod
    def from_string(cls, value: str) -> "Phase":
        """Convert string to Phase enum, case-insensitively."""
        try:
            return cls(str(value).strip().upper())
        except ValueError as e:
            raise ValueError(
                f"Unsupported phase: {value}. Supported phases: {', '.join(p.value for p in cls)}"
            ) from e
