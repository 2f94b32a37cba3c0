"""
Gapfade Backtester
------------------
A deterministic candle-by-candle replay engine for a single intraday instrument.
Simulates the two-candle gap-up exhaustion (short) strategy with capital-relative
stop-loss / take-profit and a single-position book.
"""

__version__ = "1.0.0"
