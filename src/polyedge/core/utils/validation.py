"""
Validation utilities for caller-supplied parameters.

Used at the edges of the evaluation procedures, where a bad argument is a
caller error rather than a malformed data point.
"""

from collections.abc import Iterable
from typing import Any

from polyedge.core.exceptions.backtest import ValidationError
from polyedge.core.types.numeric import is_finite


def validate_finite(value: Any, param_name: str) -> float:
    """Validate that a value is a finite number.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value as float

    Raises:
        ValidationError: If value is not a finite number
    """
    if not is_finite(value):
        raise ValidationError(f"{param_name} must be a finite number, got {value!r}")
    return float(value)


def validate_positive(value: Any, param_name: str) -> float:
    """Validate that a numeric value is finite and positive.

    Raises:
        ValidationError: If value is not positive
    """
    value = validate_finite(value, param_name)
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_candidates(values: Iterable[Any], param_name: str) -> list[float]:
    """Validate a list of grid candidates, each a finite number.

    Args:
        values: Candidate values
        param_name: Grid dimension name for error messages

    Returns:
        Candidates as a list of floats

    Raises:
        ValidationError: If any candidate is not finite
    """
    return [validate_finite(value, f"{param_name}[{i}]") for i, value in enumerate(values)]
