"""
Historical signal loaders.

Reads stored signal records from CSV or JSON files into BacktestSignal
lists ordered by timestamp. Malformed rows are skipped rather than
aborting the load.
"""

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from threading import RLock
from typing import Any

import pandas as pd
from cachetools import LRUCache
from loguru import logger
from pydantic import ValidationError as SchemaValidationError

from polyedge.core.exceptions.backtest import DataError, MissingColumnsError
from polyedge.core.interfaces.signals import ISignalSource
from polyedge.core.models.signal import BacktestSignal
from polyedge.infrastructure.schemas import BacktestSignalSchema


def _column_names() -> dict[str, str]:
    """Map accepted column names (alias or field name) to field names."""
    names = {}
    for name, info in BacktestSignalSchema.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


REQUIRED_FIELDS = tuple(
    name for name, info in BacktestSignalSchema.model_fields.items() if info.is_required()
)


def sort_chronologically(signals: list[BacktestSignal]) -> list[BacktestSignal]:
    """Stable sort by timestamp, comparing instants in UTC.

    ISO 8601 offsets and precisions may be mixed. Timestamps that cannot be
    parsed sort last, in input order.
    """
    if not signals:
        return signals

    instants = pd.to_datetime(
        pd.Series([signal.timestamp for signal in signals]),
        utc=True,
        format="ISO8601",
        errors="coerce",
    )
    unparsed = int(instants.isna().sum())
    if unparsed:
        logger.warning(f"{unparsed} signals have unparseable timestamps; ordering them last")

    order = instants.sort_values(kind="stable", na_position="last").index
    return [signals[i] for i in order]


def parse_records(records: Iterable[dict[str, Any]], source: str) -> list[BacktestSignal]:
    """Validate raw records into signals, skipping and counting invalid ones.

    Returns:
        Signals stably sorted by the instant their timestamps denote
    """
    signals: list[BacktestSignal] = []
    skipped = 0
    for index, record in enumerate(records):
        try:
            signals.append(BacktestSignalSchema.model_validate(record).to_domain())
        except SchemaValidationError as e:
            skipped += 1
            logger.debug(f"Skipping record {index} from {source}: {e.error_count()} errors")

    if skipped:
        logger.warning(f"Skipped {skipped} invalid signal records from {source}")
    logger.info(f"Loaded {len(signals)} signals from {source}")

    return sort_chronologically(signals)


class SignalCSVLoader(ISignalSource):
    """Load signals from a CSV file with camelCase or snake_case headers.

    Parsed files are cached by path, size and modification time, so
    repeated evaluations over the same file skip re-validation.
    """

    DEFAULT_CACHE_SIZE = 16

    def __init__(self, cache_size: int = DEFAULT_CACHE_SIZE):
        if cache_size <= 0:
            raise ValueError("Cache size must be positive")
        self.cache: LRUCache[tuple[str, int, int], list[BacktestSignal]] = LRUCache(
            maxsize=cache_size
        )
        self._cache_lock = RLock()

    def load(self, source: str | Path) -> list[BacktestSignal]:
        """
        Read, validate and order signals from a CSV file.

        Args:
            source: Path to the CSV file

        Returns:
            Signals ordered by timestamp

        Raises:
            DataError: If the file is missing or unreadable
            MissingColumnsError: If required columns are absent
        """
        path = Path(source)
        if not path.exists():
            raise DataError(f"Signal file not found: {path}")

        cache_key = self._build_cache_key(path)
        with self._cache_lock:
            cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {path.name}")
            return list(cached)

        signals = self._read(path)
        with self._cache_lock:
            self.cache[cache_key] = signals
        return list(signals)

    def clear_cache(self) -> None:
        with self._cache_lock:
            self.cache.clear()

    @staticmethod
    def _build_cache_key(path: Path) -> tuple[str, int, int]:
        stat = path.stat()
        return str(path.resolve()), stat.st_size, stat.st_mtime_ns

    def _read(self, path: Path) -> list[BacktestSignal]:
        try:
            df = pd.read_csv(path, dtype={"timestamp": str, "marketId": str, "market_id": str})
        except pd.errors.EmptyDataError:
            logger.warning(f"Signal file is empty: {path.name}")
            return []
        except (OSError, pd.errors.ParserError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read signal file {path.name}: {e}")
            raise DataError(f"Failed to read signal file: {path.name}") from e

        df = self._normalize_columns(df)
        missing = [name for name in REQUIRED_FIELDS if name not in df.columns]
        if missing:
            raise MissingColumnsError(path.name, missing)

        records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
        return parse_records(records, path.name)

    @staticmethod
    def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
        names = _column_names()
        return df.rename(columns={col: names.get(str(col).strip(), col) for col in df.columns})


def load_signals_json(path: str | Path) -> list[BacktestSignal]:
    """
    Load signals from a JSON array, or an object with a "signals" array.

    Raises:
        DataError: If the file is missing, unreadable or not a signal list
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise DataError(f"Signal file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise DataError(f"Failed to read signal file: {path.name}") from e

    if isinstance(data, dict):
        data = data.get("signals")
    if not isinstance(data, list):
        raise DataError(f"Expected a list of signals in {path.name}")

    return parse_records((r for r in data if isinstance(r, dict)), path.name)


def signals_to_frame(signals: Sequence[BacktestSignal]) -> pd.DataFrame:
    """Tabulate signals, one row each, with snake_case columns."""
    return pd.DataFrame([signal.to_dict() for signal in signals])
