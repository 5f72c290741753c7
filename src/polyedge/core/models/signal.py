"""
Historical signal observation model.
"""

from dataclasses import asdict, dataclass
from typing import Any

from polyedge.core.enums import Phase, Regime, Side
from polyedge.core.types.numeric import is_finite


@dataclass
class BacktestSignal:
    """One historical signal observation for a market window.

    final_price is None while the window is unsettled; such signals are
    counted but never traded. Order-book, VWAP and RSI context is kept for
    analysis only.
    """

    timestamp: str
    market_id: str
    side: Side
    phase: Phase
    regime: Regime | None
    edge: float
    effective_edge: float
    model_up: float
    model_down: float
    market_up: float
    market_down: float
    confidence: float
    volatility_15m: float
    price_to_beat: float
    final_price: float | None
    orderbook_imbalance: float | None = None
    vwap_slope: float | None = None
    rsi: float | None = None

    @property
    def is_settled(self) -> bool:
        """Check the window has a finite settlement price."""
        return is_finite(self.final_price)

    @property
    def trading_day(self) -> str:
        """Calendar day bucket (YYYY-MM-DD prefix of the ISO timestamp)."""
        return self.timestamp[:10]

    @property
    def model_prob(self) -> float:
        """Model-implied probability for the signal's side."""
        return self.model_up if self.side == Side.UP else self.model_down

    @property
    def buy_price(self) -> float:
        """Market price paid for the signal's side."""
        return self.market_up if self.side == Side.UP else self.market_down

    def to_dict(self) -> dict[str, Any]:
        """Convert signal to dictionary with plain string enums."""
        data = asdict(self)
        data["side"] = self.side.value
        data["phase"] = self.phase.value
        data["regime"] = self.regime.value if self.regime is not None else None
        return data
