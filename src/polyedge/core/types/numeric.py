"""
Numeric primitives shared by every evaluation component.

All helpers accept loosely typed inputs (None, NaN, infinities) and never
raise on them: callers decide what a non-finite value means.

IMPORTANT PRECISION CONSIDERATIONS:
- Plain float64 arithmetic throughout; no Decimal rounding is applied
- Standard deviation is the POPULATION form (divide by N), matching the
  Sharpe and cross-validation aggregates
- erf uses the Abramowitz-Stegun 7.1.26 approximation (|error| < 1.5e-7),
  so erf(0) is ~1e-9 rather than exactly 0
"""

import math
from collections.abc import Iterable
from numbers import Real
from typing import Any

import numpy as np

# Abramowitz-Stegun 7.1.26 coefficients
ERF_A1 = 0.254829592
ERF_A2 = -0.284496736
ERF_A3 = 1.421413741
ERF_A4 = -1.453152027
ERF_A5 = 1.061405429
ERF_P = 0.3275911

ZERO = 0.0
ONE = 1.0


def is_finite(value: Any) -> bool:
    """Check that a value is a real, finite number.

    Args:
        value: Any value

    Returns:
        False for None, booleans, non-numbers, NaN and infinities

    Examples:
        >>> is_finite(0.5)
        True
        >>> is_finite(float("nan"))
        False
    """
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def finite_or(value: Any, default: float) -> float:
    """Return value as float when finite, otherwise the default."""
    return float(value) if is_finite(value) else default


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper].

    Args:
        value: Value to clamp
        lower: Lower bound
        upper: Upper bound

    Returns:
        max(lower, min(upper, value))
    """
    return max(lower, min(upper, value))


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0.0 for empty input."""
    data = np.fromiter(values, dtype=float)
    if data.size == 0:
        return ZERO
    return float(np.mean(data))


def std(values: Iterable[float]) -> float:
    """Population standard deviation (ddof=0), 0.0 for empty input."""
    data = np.fromiter(values, dtype=float)
    if data.size == 0:
        return ZERO
    return float(np.std(data, ddof=0))


def safe_divide(numerator: float, denominator: float, default: float = ZERO) -> float:
    """Divide, returning default when the denominator is zero or not finite."""
    if not is_finite(denominator) or denominator == 0:
        return default
    return numerator / denominator


def erf(x: float) -> float:
    """Error function via the Abramowitz-Stegun rational approximation.

    Args:
        x: Input value

    Returns:
        Approximation of erf(x), odd-symmetric

    Examples:
        >>> round(erf(1.0), 5)
        0.8427
    """
    sign = -1.0 if x < 0 else 1.0
    ax = abs(x)
    t = 1.0 / (1.0 + ERF_P * ax)
    poly = ((((ERF_A5 * t + ERF_A4) * t + ERF_A3) * t + ERF_A2) * t + ERF_A1) * t
    return sign * (1.0 - poly * math.exp(-ax * ax))


def normal_cdf(x: float) -> float:
    """Standard normal cumulative distribution function.

    Args:
        x: Z-score

    Returns:
        P(Z <= x) for a standard normal Z
    """
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))
