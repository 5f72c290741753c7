"""
Utility decorators for logging evaluation procedures.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable, Sized
from typing import Any, TypeVar

from loguru import logger

_CONTEXT_PARAMS = ("folds", "sort_by", "trade_size", "max_workers")

F = TypeVar("F", bound=Callable[..., Any])


def _serialize_parameter_value(value: Any) -> Any:
    """Serialize parameter value for logging."""
    if hasattr(value, "value"):
        return str(value.value)  # Handle enum values
    return value


def _extract_evaluation_context(bound_args: inspect.BoundArguments) -> dict[str, Any]:
    """Extract loggable context from evaluation arguments."""
    context: dict[str, Any] = {}
    for param_name, value in bound_args.arguments.items():
        if param_name == "signals" and isinstance(value, Sized):
            context["signal_count"] = len(value)
        elif param_name in _CONTEXT_PARAMS and value is not None:
            context[param_name] = _serialize_parameter_value(value)
    return context


def _setup_logging_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Setup logging context for an evaluation call."""
    bound_args = inspect.signature(func).bind(*args, **kwargs)
    bound_args.apply_defaults()
    return {
        "correlation_id": str(uuid.uuid4())[:8],
        **_extract_evaluation_context(bound_args),
    }


def log_evaluation(func: F) -> F:
    """Decorator to log evaluation procedures with correlation IDs and timing."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = _setup_logging_context(func, args, kwargs)
        bound = logger.bind(**context)
        bound.info(f"Evaluation started: {func.__name__}")
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
            bound.bind(
                success=False,
                execution_time_ms=execution_time_ms,
                error_type=type(e).__name__,
            ).error(f"Evaluation failed: {func.__name__}: {e}")
            raise

        execution_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
        bound.bind(success=True, execution_time_ms=execution_time_ms).success(
            f"Evaluation completed: {func.__name__} in {execution_time_ms}ms"
        )
        return result

    return wrapper  # type: ignore
