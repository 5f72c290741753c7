"""
Unit tests for the evaluation logging decorator.
"""

from collections.abc import Iterator
from typing import Any

import pytest
from loguru import logger

from polyedge.core.enums import OptimizationMetric
from polyedge.core.utils.decorators import log_evaluation


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    """Capture loguru records emitted while the test runs."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


class TestLogEvaluationDecorator:
    """Test suite for @log_evaluation decorator."""

    def test_should_log_entry_and_success(self, log_records) -> None:
        """Test that the decorator logs start and completion with context."""

        @log_evaluation
        def evaluate(config: str, signals: list[int], trade_size: float = 5.0) -> int:
            return len(signals)

        assert evaluate("base", [1, 2, 3]) == 3

        started, completed = log_records
        assert started["message"] == "Evaluation started: evaluate"
        assert started["level"].name == "INFO"
        assert started["extra"]["signal_count"] == 3
        assert started["extra"]["trade_size"] == 5.0
        assert len(started["extra"]["correlation_id"]) == 8

        assert completed["level"].name == "SUCCESS"
        assert completed["extra"]["success"] is True
        assert "execution_time_ms" in completed["extra"]
        assert completed["extra"]["correlation_id"] == started["extra"]["correlation_id"]

    def test_should_log_failure_and_reraise(self, log_records) -> None:
        """Test that exceptions are logged with their type and propagated."""

        @log_evaluation
        def evaluate(signals: list[int]) -> None:
            raise ValueError("bad grid")

        with pytest.raises(ValueError, match="bad grid"):
            evaluate([])

        failed = log_records[-1]
        assert failed["level"].name == "ERROR"
        assert failed["extra"]["success"] is False
        assert failed["extra"]["error_type"] == "ValueError"
        assert "bad grid" in failed["message"]

    def test_should_serialize_enum_parameters(self, log_records) -> None:
        """Test that enum arguments are logged by value."""

        @log_evaluation
        def evaluate(signals: list[int], sort_by: OptimizationMetric) -> str:
            return "ok"

        evaluate([], OptimizationMetric.WIN_RATE)

        assert log_records[0]["extra"]["sort_by"] == "win_rate"

    def test_should_skip_unset_optional_context(self, log_records) -> None:
        """Test that None-valued context parameters are omitted."""

        @log_evaluation
        def evaluate(signals: list[int], max_workers: int | None = None) -> None:
            return None

        evaluate([1])

        assert "max_workers" not in log_records[0]["extra"]

    def test_should_preserve_function_metadata(self) -> None:
        """Test functools.wraps behaviour."""

        @log_evaluation
        def evaluate(signals: list[int]) -> None:
            """Evaluate things."""

        assert evaluate.__name__ == "evaluate"
        assert evaluate.__doc__ == "Evaluate things."
