"""
Signal and result file adapters.
"""

from .result_writer import JSONResultWriter
from .signal_loader import SignalCSVLoader, load_signals_json, parse_records, signals_to_frame

__all__ = [
    "SignalCSVLoader",
    "JSONResultWriter",
    "load_signals_json",
    "parse_records",
    "signals_to_frame",
]
