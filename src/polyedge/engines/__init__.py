"""
Live decision calculators: sizing, risk levels, signal quality and trade filtering.
"""

from .position_sizing import calculate_kelly_position_size
from .refinement import REFINED_STRATEGY, RefinementRules, TradeFilterDecision, should_take_trade
from .risk_management import calculate_take_profit, calculate_volatility_stop, update_trailing_stop
from .signal_quality import SignalQualityModel, compute_similarity

__all__ = [
    "calculate_kelly_position_size",
    "calculate_volatility_stop",
    "update_trailing_stop",
    "calculate_take_profit",
    "compute_similarity",
    "SignalQualityModel",
    "REFINED_STRATEGY",
    "RefinementRules",
    "TradeFilterDecision",
    "should_take_trade",
]
