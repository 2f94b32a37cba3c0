import numpy as np

from gapfade_backtester.models import Candle, MarketSession

# warm-up, anchor (gap-up, low above EMA5), breakdown -> SELL 948 @ 105.4
GAP_ROWS = [
    ("09:15", 104.0, 106.0, 103.0, 105.0),
    ("09:20", 106.0, 108.0, 106.0, 107.5),
    ("09:25", 106.5, 106.8, 105.2, 105.4),
]
ENTRY_PRICE = 105.4
ENTRY_QTY = 948


def make_candles(rows):
    return tuple(Candle(ts, float(o), float(h), float(l), float(c)) for ts, o, h, l, c in rows)


def make_session(rows, previous_day_close=100.0, capital=100000.0, instrument="TEST"):
    return MarketSession(
        instrument=instrument,
        previous_day_close=previous_day_close,
        capital=capital,
        candles=make_candles(rows),
    )


def random_walk_rows(seed, n=60, start=104.0, previous_day_close=100.0):
    """Gap-up open followed by a noisy walk; used for invariant checks."""
    rng = np.random.default_rng(seed)
    close = start + rng.normal(0, 0.6, size=n).cumsum()
    open_ = np.r_[start, close[:-1]]
    high = np.maximum(open_, close) + rng.uniform(0.0, 0.5, size=n)
    low = np.minimum(open_, close) - rng.uniform(0.0, 0.5, size=n)
    rows = []
    for i in range(n):
        mins = 9 * 60 + 15 + 5 * i
        ts = f"{mins // 60:02d}:{mins % 60:02d}"
        rows.append((ts, open_[i], high[i], low[i], close[i]))
    return rows
