"""
Script: Session Chart
Purpose: Plots closes, both EMAs and the executed trades of one backtest run.

Reads `events.jsonl` from a `gapfade backtest` artifacts directory.

Usage:
    python scripts/plot_session.py --run-dir outputs/backtest/<run_id> --out session.png
"""

from __future__ import annotations
import argparse
import json
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd


def load_events(run_dir: Path) -> list[dict]:
    path = run_dir / "events.jsonl"
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def plot_session(events: list[dict], out: Path) -> None:
    candles = pd.DataFrame([e for e in events if e["kind"] == "candle"])
    if candles.empty:
        print("No candle events found (was the run written with --write-events?)")
        return

    entries = pd.DataFrame([e for e in events if e["kind"] == "trade_executed"])
    exits = pd.DataFrame([e for e in events if e["kind"] == "trade_closed"])

    fig, ax = plt.subplots(figsize=(12, 6))
    x = range(len(candles))
    pos = {ts: i for i, ts in enumerate(candles["timestamp"])}

    ax.vlines(x, candles["low"], candles["high"], color="#7f8c8d", linewidth=1)
    ax.plot(x, candles["close"], color="#2c3e50", linewidth=1.5, label="Close")
    ax.plot(x, candles["ema_fast"], color="#2980b9", linewidth=1, label="EMA fast")
    ax.plot(x, candles["ema_slow"], color="#8e44ad", linewidth=1, label="EMA slow")

    if not entries.empty:
        ax.scatter(
            [pos.get(t, 0) for t in entries["timestamp"]],
            entries["price"],
            marker="v",
            color="#c0392b",
            s=80,
            label="Entry (SELL)",
            zorder=3,
        )
    if not exits.empty:
        ax.scatter(
            [pos.get(t, len(candles) - 1) for t in exits["timestamp"]],
            exits["price"],
            marker="^",
            color="#27ae60",
            s=80,
            label="Exit",
            zorder=3,
        )

    ax.set_xticks(list(x))
    ax.set_xticklabels(candles["timestamp"], rotation=45, fontsize=8)
    ax.set_ylabel("Price")
    ax.grid(True, linestyle="--", alpha=0.3)
    ax.legend(loc="upper right")

    plt.tight_layout()
    plt.savefig(out, dpi=150)
    print(f"Chart saved to: {out}")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--run-dir", required=True)
    ap.add_argument("--out", default="session.png")
    args = ap.parse_args()

    plot_session(load_events(Path(args.run_dir)), Path(args.out))


if __name__ == "__main__":
    main()
