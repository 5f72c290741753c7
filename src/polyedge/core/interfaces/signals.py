"""
Interfaces to the collaborators around the evaluation core.

The signal pipeline produces signals and the persistence layer consumes
results; both live outside this package.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from polyedge.core.models.signal import BacktestSignal


class ISignalSource(ABC):
    """Abstract interface for historical signal sources."""

    @abstractmethod
    def load(self, source: str | Path) -> list[BacktestSignal]:
        """Load signals ordered by timestamp."""
        pass


class IResultSink(ABC):
    """Abstract interface for storing evaluation results."""

    @abstractmethod
    def save(self, name: str, payload: dict[str, Any]) -> None:
        """Persist a serialised result under a name."""
        pass
