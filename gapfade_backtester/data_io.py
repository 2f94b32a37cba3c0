"""
Data IO Layer
-------------
Builds a MarketSession from disk before a run starts.
- JSON: the full session record (instrument, previous close, capital, candles).
- CSV / Parquet: a candle table; session scalars are supplied by the caller.

Integrity problems (out-of-order stamps, crossed OHLC) are logged, not fixed:
the engine replays data exactly as given.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import pandas as pd

from .models import Candle, MarketSession, hhmm_to_minutes

logger = logging.getLogger(__name__)

REQ_COLS = ("open", "high", "low", "close")
_TS_COLS = ("timestamp", "time", "datetime", "ts")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def _to_hhmm(value: Any) -> str:
    """Accepts "H:MM", "HH:MM[:SS]" strings or anything pandas parses; returns "HH:MM"."""
    if isinstance(value, str):
        s = value.strip()
        m = _CLOCK_RE.match(s)
        if m:
            return f"{int(m.group(1)):02d}:{m.group(2)}"
        return pd.Timestamp(s).strftime("%H:%M")
    return pd.Timestamp(value).strftime("%H:%M")


def candle_from_dict(raw: dict[str, Any]) -> Candle:
    missing = [k for k in ("timestamp", *REQ_COLS) if k not in raw]
    if missing:
        raise ValueError(f"candle record missing fields {missing}: {raw!r}")
    return Candle(
        timestamp=_to_hhmm(raw["timestamp"]),
        open=float(raw["open"]),
        high=float(raw["high"]),
        low=float(raw["low"]),
        close=float(raw["close"]),
    )


def session_from_dict(raw: dict[str, Any]) -> MarketSession:
    """Parses the JSON session layout. Unknown keys are ignored."""
    candles = raw.get("candles") or []
    if not isinstance(candles, list):
        raise ValueError(f"'candles' must be a list, got {type(candles).__name__}")
    return MarketSession(
        instrument=str(raw.get("instrument", "")),
        previous_day_close=float(raw.get("previous_day_close", 0.0)),
        capital=float(raw.get("capital", 0.0)),
        candles=tuple(candle_from_dict(c) for c in candles),
    )


def candles_from_frame(df: pd.DataFrame) -> tuple[Candle, ...]:
    """Converts an OHLC table (timestamp column or DatetimeIndex) into candles."""
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]

    missing = set(REQ_COLS) - set(df.columns)
    if missing:
        raise ValueError(
            f"candles_from_frame: missing required OHLC columns {sorted(missing)}; "
            f"got columns={list(df.columns)}"
        )

    ts_col = next((c for c in _TS_COLS if c in df.columns), None)
    if ts_col is not None:
        stamps = [_to_hhmm(v) for v in df[ts_col]]
    elif isinstance(df.index, pd.DatetimeIndex):
        stamps = [ts.strftime("%H:%M") for ts in df.index]
    else:
        raise ValueError(
            f"candles_from_frame: could not find timestamp column; got columns={list(df.columns)}"
        )

    ohlc = df[list(REQ_COLS)].astype(float).to_numpy()
    return tuple(
        Candle(timestamp=ts, open=o, high=h, low=l, close=c)
        for ts, (o, h, l, c) in zip(stamps, ohlc)
    )


def load_market_session(
    path: str | Path,
    *,
    instrument: str | None = None,
    previous_day_close: float | None = None,
    capital: float | None = None,
) -> MarketSession:
    """
    Loads a session from .json, .csv or .parquet. Keyword arguments override
    (JSON) or supply (tables) the session-level values.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Cannot open file: {path}")

    suf = p.suffix.lower()
    if suf == ".json":
        with open(p, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"load_market_session: expected a JSON object in {path!r}")
        session = session_from_dict(raw)
        if instrument is None and previous_day_close is None and capital is None:
            return session
        return MarketSession(
            instrument=instrument if instrument is not None else session.instrument,
            previous_day_close=(
                float(previous_day_close)
                if previous_day_close is not None
                else session.previous_day_close
            ),
            capital=float(capital) if capital is not None else session.capital,
            candles=session.candles,
        )

    if suf == ".parquet":
        df = pd.read_parquet(p)
    elif suf == ".csv":
        df = pd.read_csv(p)
    else:
        raise ValueError(f"Unsupported data file type: {suf}")

    return MarketSession(
        instrument=instrument if instrument is not None else p.stem,
        previous_day_close=float(previous_day_close or 0.0),
        capital=float(capital or 0.0),
        candles=candles_from_frame(df),
    )


def check_integrity(session: MarketSession) -> list[str]:
    """
    Logs a warning for every anomaly found and returns the messages.
    Nothing is corrected; the run proceeds on the data as given.
    """
    issues: list[str] = []
    prev: int | None = None
    for i, c in enumerate(session.candles):
        try:
            mins = hhmm_to_minutes(c.timestamp)
        except ValueError:
            issues.append(f"candle {i}: unparseable timestamp {c.timestamp!r}")
            continue
        if prev is not None and mins <= prev:
            issues.append(f"candle {i}: timestamp {c.timestamp} is not after the previous one")
        prev = mins

        if c.high < max(c.open, c.close, c.low) or c.low > min(c.open, c.close, c.high):
            issues.append(
                f"candle {i} ({c.timestamp}): crossed OHLC "
                f"o={c.open} h={c.high} l={c.low} c={c.close}"
            )

    for msg in issues:
        logger.warning("Data Integrity Warning [%s]: %s", session.instrument, msg)
    return issues
