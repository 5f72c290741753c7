"""
Core constants and defaults.

Defines system-wide defaults for strategy evaluation, position sizing,
risk calculators and the signal-quality model.
"""

# Backtest Engine
DEFAULT_TRADE_SIZE = 5.0  # Fixed USDC stake per simulated trade
TRADING_DAYS_PER_YEAR = 252  # Sharpe annualisation factor (sqrt applied)

# Statistical Testing
SIGNIFICANCE_LEVEL = 0.05  # A/B test p-value threshold
OVERFIT_WIN_RATE_GAP = 0.10  # Cross-validation overfit detection gap
DEFAULT_FOLDS = 5
MIN_FOLDS = 2

# Position Sizing (Kelly)
DEFAULT_MIN_SIZE = 0.5
DEFAULT_KELLY_FRACTION = 0.5  # Half-Kelly
DEFAULT_SIZING_CONFIDENCE = 0.5
MAX_BANKROLL_RISK_PER_TRADE = 0.25  # 25% of bankroll hard cap

# Risk Calculators
DEFAULT_VOLATILITY_MULTIPLIER = 2.0
DEFAULT_MIN_STOP_PERCENT = 0.01
DEFAULT_MAX_STOP_PERCENT = 0.05
DEFAULT_BASE_PROFIT_PERCENT = 0.03
DEFAULT_MIN_PROFIT_PERCENT = 0.005
DEFAULT_PROFIT_DECAY_RATE = 0.002  # Per elapsed minute

# Signal Quality Model
DEFAULT_MAX_PER_MARKET = 500
DEFAULT_MAX_TOTAL = 2000
MIN_NEIGHBOR_POOL = 10  # Below this the prediction is INSUFFICIENT
DEFAULT_NEIGHBORS = 20
MIN_GROUP_SAMPLES = 5

# Default Strategy Thresholds
DEFAULT_EDGE_THRESHOLD_EARLY = 0.08
DEFAULT_EDGE_THRESHOLD_MID = 0.1
DEFAULT_EDGE_THRESHOLD_LATE = 0.12
DEFAULT_MIN_PROB_EARLY = 0.58
DEFAULT_MIN_PROB_MID = 0.6
DEFAULT_MIN_PROB_LATE = 0.7
DEFAULT_REGIME_MULTIPLIERS = {
    "CHOP": 1.5,
    "RANGE": 1.0,
    "TREND_ALIGNED": 0.8,
    "TREND_OPPOSED": 1.3,
}

# Configuration
CONFIG_PATH_ENV_VAR = "POLYEDGE_CONFIG"
DEFAULT_CONFIG_PATH = "config.json"
