"""
Core type definitions and utilities.
"""

# Re-export numeric primitives for easy access
from .numeric import (
    ONE,
    ZERO,
    clamp,
    erf,
    finite_or,
    is_finite,
    mean,
    normal_cdf,
    safe_divide,
    std,
)

__all__ = [
    # Utility functions
    "is_finite",
    "finite_or",
    "clamp",
    "mean",
    "std",
    "safe_divide",
    "erf",
    "normal_cdf",
    # Constants
    "ZERO",
    "ONE",
]
