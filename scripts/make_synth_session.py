"""
Script: Synthetic Session Generator
Purpose: Creates a deterministic gap-up session for demos and smoke tests.

Description:
    Opens the day `--gap` above the previous close, then follows a seeded random
    walk with a downward drift in 5-minute candles from 09:15 to 15:30.
    Writes the JSON session layout read by `gapfade backtest`, or a candle
    table when the output ends in .csv / .parquet.

Usage:
    python scripts/make_synth_session.py --out data/synth_session.json --seed 7
"""

from __future__ import annotations
import argparse
import json
from pathlib import Path
import numpy as np
import pandas as pd


def make_synth_candles(
    previous_close: float, gap: float, drift: float, seed: int
) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    idx = pd.date_range("09:15", "15:30", freq="5min")

    start = previous_close * (1.0 + gap)
    steps = rng.normal(drift, 0.25, size=len(idx))
    close = start + np.cumsum(steps)
    open_ = np.r_[start, close[:-1]]
    high = np.maximum(open_, close) + rng.uniform(0.05, 0.3, size=len(idx))
    low = np.minimum(open_, close) - rng.uniform(0.05, 0.3, size=len(idx))

    return pd.DataFrame(
        {
            "timestamp": idx.strftime("%H:%M"),
            "open": open_.round(2),
            "high": high.round(2),
            "low": low.round(2),
            "close": close.round(2),
        }
    )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", required=True, help="Output .json/.csv/.parquet path")
    ap.add_argument("--instrument", default="SYNTH")
    ap.add_argument("--previous-close", type=float, default=100.0)
    ap.add_argument("--capital", type=float, default=100000.0)
    ap.add_argument("--gap", type=float, default=0.04)
    ap.add_argument("--drift", type=float, default=-0.05)
    ap.add_argument("--seed", type=int, default=123)
    args = ap.parse_args()

    out = Path(args.out).expanduser().resolve()
    out.parent.mkdir(parents=True, exist_ok=True)

    df = make_synth_candles(args.previous_close, args.gap, args.drift, args.seed)

    suf = out.suffix.lower()
    if suf == ".parquet":
        df.to_parquet(out, index=False)
    elif suf == ".csv":
        df.to_csv(out, index=False)
    else:
        payload = {
            "instrument": args.instrument,
            "previous_day_close": args.previous_close,
            "capital": args.capital,
            "candles": df.to_dict(orient="records"),
        }
        out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(str(out))


if __name__ == "__main__":
    main()
