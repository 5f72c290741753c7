"""
Evaluation label enumerations.
"""

from enum import StrEnum


class OptimizationMetric(StrEnum):
    """BacktestResult fields the optimizer can rank by."""

    SHARPE_RATIO = "sharpe_ratio"
    WIN_RATE = "win_rate"
    TOTAL_PNL = "total_pnl"

    @classmethod
    def parse(cls, value: "OptimizationMetric | str") -> "OptimizationMetric":
        """
        Accept enum values, snake_case or camelCase metric names.

        Raises:
            ValueError: If metric is not supported
        """
        aliases = {"sharpeRatio": cls.SHARPE_RATIO, "winRate": cls.WIN_RATE, "totalPnl": cls.TOTAL_PNL}
        if isinstance(value, str) and value in aliases:
            return aliases[value]
        return cls(value)


class QualityConfidence(StrEnum):
    """Confidence label attached to a signal-quality prediction."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INSUFFICIENT = "INSUFFICIENT"

    @classmethod
    def classify(cls, sample_size: int, avg_similarity: float) -> "QualityConfidence":
        """Label a neighbourhood by its size and average similarity."""
        if sample_size >= 20 and avg_similarity >= 0.7:
            return cls.HIGH
        if sample_size >= 15 and avg_similarity >= 0.55:
            return cls.MEDIUM
        return cls.LOW
