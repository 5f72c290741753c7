"""
Similarity-weighted k-nearest-neighbour win-rate predictor.

The model keeps a bounded rolling history of settled signals, globally and
per market, and predicts the win rate of a new signal from its most similar
predecessors.
"""

import math
import time
from dataclasses import replace
from typing import Any

from loguru import logger

from polyedge.core.constants import (
    DEFAULT_MAX_PER_MARKET,
    DEFAULT_MAX_TOTAL,
    DEFAULT_NEIGHBORS,
    MIN_GROUP_SAMPLES,
    MIN_NEIGHBOR_POOL,
)
from polyedge.core.enums import Phase, QualityConfidence, Regime
from polyedge.core.models.quality import (
    GroupPerformance,
    HistoricalSignal,
    SignalFeatures,
    SignalQualityResult,
)
from polyedge.core.types.numeric import clamp, is_finite

# Feature scale factors for the weighted distance
EDGE_WEIGHT = 5.0
CONFIDENCE_WEIGHT = 2.0
VOLATILITY_WEIGHT = 100.0
MODEL_UP_WEIGHT = 3.0
RSI_WEIGHT = 2.0
VWAP_SLOPE_WEIGHT = 10.0

# Flat penalties for categorical mismatches
PHASE_MISMATCH_PENALTY = 1.0
REGIME_MISMATCH_PENALTY = 0.5
MARKET_MISMATCH_PENALTY = 0.3

_UNSET: Any = object()


def compute_similarity(features: SignalFeatures, other: SignalFeatures) -> float:
    """Similarity in (0, 1] between a candidate and a recorded signal.

    Distance is a weighted squared-Euclidean sum over edge, confidence,
    volatility and model probability, plus RSI and VWAP slope when both
    sides carry them, plus flat penalties for phase, regime and market
    mismatches. Identical features give exactly 1.

    Args:
        features: Candidate signal features
        other: Recorded signal to compare against

    Returns:
        1 / (1 + sqrt(distance))
    """
    dist = 0.0
    dist += ((features.edge - other.edge) * EDGE_WEIGHT) ** 2
    dist += ((features.confidence - other.confidence) * CONFIDENCE_WEIGHT) ** 2
    dist += ((features.volatility_15m - other.volatility_15m) * VOLATILITY_WEIGHT) ** 2
    dist += ((features.model_up - other.model_up) * MODEL_UP_WEIGHT) ** 2

    if features.rsi is not None and other.rsi is not None:
        dist += (((features.rsi - other.rsi) / 100) * RSI_WEIGHT) ** 2

    if features.vwap_slope is not None and other.vwap_slope is not None:
        dist += ((features.vwap_slope - other.vwap_slope) * VWAP_SLOPE_WEIGHT) ** 2

    if features.phase != other.phase:
        dist += PHASE_MISMATCH_PENALTY
    if features.regime != other.regime:
        dist += REGIME_MISMATCH_PENALTY
    if features.market_id != other.market_id:
        dist += MARKET_MISMATCH_PENALTY

    return 1.0 / (1.0 + math.sqrt(dist))


def _remove_identical(bucket: list[HistoricalSignal], target: HistoricalSignal) -> bool:
    # Equal-valued records are distinct observations, so match on identity
    for i, signal in enumerate(bucket):
        if signal is target:
            del bucket[i]
            return True
    return False


class SignalQualityModel:
    """Bounded kNN win-rate model.

    Not thread-safe: callers sharing an instance across threads must
    serialise record_outcome.
    """

    def __init__(
        self, max_per_market: int = DEFAULT_MAX_PER_MARKET, max_total: int = DEFAULT_MAX_TOTAL
    ):
        self.max_per_market = max(1, int(max_per_market))
        self.max_total = max(1, int(max_total))
        self._history: list[HistoricalSignal] = []
        self._market_history: dict[str, list[HistoricalSignal]] = {}

    @property
    def history_size(self) -> int:
        return len(self._history)

    def market_history_size(self, market_id: str) -> int:
        return len(self._market_history.get(market_id, []))

    def record_outcome(self, signal: HistoricalSignal) -> None:
        """Append a settled signal, evicting the oldest entries past either cap.

        A non-finite timestamp is replaced by the current time in epoch
        milliseconds. Eviction from one history also removes the same
        record from the other.
        """
        if not is_finite(signal.timestamp):
            signal = replace(signal, timestamp=time.time() * 1000)

        self._history.append(signal)
        market_signals = self._market_history.setdefault(signal.market_id, [])
        market_signals.append(signal)

        while len(market_signals) > self.max_per_market:
            removed = market_signals.pop(0)
            _remove_identical(self._history, removed)

        while len(self._history) > self.max_total:
            removed = self._history.pop(0)
            bucket = self._market_history.get(removed.market_id)
            if bucket is None:
                continue
            _remove_identical(bucket, removed)
            if not bucket:
                del self._market_history[removed.market_id]

    def predict_win_rate(
        self, features: SignalFeatures, k: int = DEFAULT_NEIGHBORS
    ) -> SignalQualityResult:
        """Predict the win rate of a candidate signal from its nearest neighbours.

        The candidate pool is the market's own history when it holds at
        least ten records, otherwise the global history. Neighbours vote
        with weight similarity squared.

        Args:
            features: Candidate signal features
            k: Number of neighbours (floored, at least 1, at most the pool size)

        Returns:
            SignalQualityResult; INSUFFICIENT with a neutral 0.5 when the
            pool holds fewer than ten records
        """
        market_signals = self._market_history.get(features.market_id, [])
        pool = market_signals if len(market_signals) >= MIN_NEIGHBOR_POOL else self._history

        if len(pool) < MIN_NEIGHBOR_POOL:
            return SignalQualityResult(
                predicted_win_rate=0.5,
                sample_size=len(pool),
                avg_similarity=0.0,
                confidence=QualityConfidence.INSUFFICIENT,
            )

        requested = math.floor(k) if is_finite(k) else DEFAULT_NEIGHBORS
        top_k = min(max(1, requested), len(pool))
        neighbors = sorted(
            ((compute_similarity(features, signal), signal) for signal in pool),
            key=lambda pair: pair[0],
            reverse=True,
        )[:top_k]

        weighted_wins = 0.0
        total_weight = 0.0
        similarity_sum = 0.0
        for similarity, signal in neighbors:
            weight = similarity**2
            if signal.won:
                weighted_wins += weight
            total_weight += weight
            similarity_sum += similarity

        raw_win_rate = weighted_wins / total_weight if total_weight > 0 else 0.5
        avg_similarity = similarity_sum / len(neighbors)

        logger.debug(
            f"kNN prediction for {features.market_id}: {raw_win_rate:.3f} "
            f"from {len(neighbors)} neighbours (avg similarity {avg_similarity:.3f})"
        )

        return SignalQualityResult(
            predicted_win_rate=clamp(raw_win_rate, 0.0, 1.0),
            sample_size=len(neighbors),
            avg_similarity=clamp(avg_similarity, 0.0, 1.0),
            confidence=QualityConfidence.classify(len(neighbors), avg_similarity),
        )

    def get_performance_by_group(
        self,
        market_id: str | None = _UNSET,
        regime: Regime | None = _UNSET,
        phase: Phase | None = _UNSET,
    ) -> GroupPerformance | None:
        """Aggregate recorded outcomes matching every given filter.

        Omitted filters match everything; regime=None matches records
        without a regime.

        Returns:
            GroupPerformance, or None when fewer than five records match
        """
        filtered = [
            signal
            for signal in self._history
            if (market_id is _UNSET or signal.market_id == market_id)
            and (regime is _UNSET or signal.regime == regime)
            and (phase is _UNSET or signal.phase == phase)
        ]

        if len(filtered) < MIN_GROUP_SAMPLES:
            return None

        count = len(filtered)
        return GroupPerformance(
            count=count,
            win_rate=sum(1 for signal in filtered if signal.won) / count,
            avg_edge=sum(signal.edge for signal in filtered) / count,
            avg_pnl=sum(signal.pnl for signal in filtered) / count,
        )
