"""
Core enumerations for the strategy evaluation core.

This module provides centralized enumerations for domain concepts
like trade sides, window phases, market regimes and evaluation metrics.
"""

from .metrics import OptimizationMetric, QualityConfidence
from .phases import Phase
from .regimes import Regime, RegimeMultiplierKey
from .sides import Side

__all__ = [
    "Side",
    "Phase",
    "Regime",
    "RegimeMultiplierKey",
    "OptimizationMetric",
    "QualityConfidence",
]
