"""
JSON result sink.
"""

import json
import math
from pathlib import Path
from typing import Any

from loguru import logger

from polyedge.core.exceptions.backtest import DataError
from polyedge.core.interfaces.signals import IResultSink


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats, which strict JSON cannot represent, with strings."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(v) for v in value]
    return value


class JSONResultWriter(IResultSink):
    """Write each evaluation result to <output_dir>/<name>.json."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def path_for(self, name: str) -> Path:
        return self.output_dir / f"{name}.json"

    def save(self, name: str, payload: dict[str, Any]) -> None:
        """
        Persist a serialised result.

        Raises:
            DataError: If the file cannot be written
        """
        path = self.path_for(name)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f:
                json.dump(_json_safe(payload), f, indent=2, default=str, allow_nan=False)
        except OSError as e:
            logger.error(f"Failed to write result {path.name}: {e}")
            raise DataError(f"Failed to write result: {path.name}") from e
        logger.info(f"Saved {name} to {path}")
