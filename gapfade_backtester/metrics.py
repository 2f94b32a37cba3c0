"""
Performance Metrics
-------------------
Turns a trade log into tabular form and computes run statistics
(win rate, average PnL, capital curve drawdown).
"""

from __future__ import annotations

from typing import Any, Iterable

import numpy as np
import pandas as pd

from .models import Trade, TradeType

_TRADE_COLS = ["timestamp", "type", "side", "price", "quantity", "pnl", "reason"]

_ROUND_TRIP_COLS = [
    "entry_time",
    "exit_time",
    "side",
    "quantity",
    "entry",
    "exit",
    "pnl",
    "exit_reason",
]


def trades_frame(trades: Iterable[Trade]) -> pd.DataFrame:
    """One row per execution, in log order."""
    rows = [t.to_dict() for t in trades]
    if not rows:
        return pd.DataFrame(columns=_TRADE_COLS)
    return pd.DataFrame.from_records(rows)[_TRADE_COLS]


def round_trips(trades: Iterable[Trade]) -> pd.DataFrame:
    """Pairs each ENTRY with the EXIT that follows it."""
    records: list[dict[str, object]] = []
    entry: Trade | None = None
    for t in trades:
        if t.type is TradeType.ENTRY:
            entry = t
            continue
        if entry is None:
            continue
        records.append(
            {
                "entry_time": entry.timestamp,
                "exit_time": t.timestamp,
                "side": t.side.value,
                "quantity": t.quantity,
                "entry": entry.price,
                "exit": t.price,
                "pnl": t.pnl,
                "exit_reason": t.reason,
            }
        )
        entry = None

    if not records:
        return pd.DataFrame(columns=_ROUND_TRIP_COLS)
    return pd.DataFrame.from_records(records)[_ROUND_TRIP_COLS]


def capital_curve(initial_capital: float, trades: Iterable[Trade]) -> pd.Series:
    """Capital after each exit, starting from the initial capital."""
    pnl = [t.pnl for t in trades if t.type is TradeType.EXIT]
    values = np.concatenate(([float(initial_capital)], np.asarray(pnl, dtype=float)))
    return pd.Series(np.cumsum(values), name="capital")


def max_drawdown(curve: pd.Series | None) -> tuple[float, float]:
    """Largest peak-to-trough fall of a capital curve, as (amount, percent of peak)."""
    if curve is None or len(curve) == 0:
        return 0.0, 0.0

    values = pd.to_numeric(curve, errors="coerce").fillna(0.0).to_numpy()
    peak = np.maximum.accumulate(values)
    dd = peak - values
    i = int(np.argmax(dd))
    amount = float(dd[i])
    pct = float(amount / peak[i] * 100.0) if peak[i] > 0 else 0.0
    return amount, pct


def compute_summary(
    initial_capital: float,
    final_capital: float,
    trades: Iterable[Trade],
    *,
    total_trades: int | None = None,
) -> dict[str, Any]:
    """Run statistics for JSON output."""
    trades = list(trades)
    rt = round_trips(trades)
    n = int(len(rt))
    entries = sum(1 for t in trades if t.type is TradeType.ENTRY)

    total_pnl = float(final_capital - initial_capital)
    out: dict[str, Any] = {
        "total_trades": int(total_trades if total_trades is not None else entries),
        "round_trips": n,
        "initial_capital": float(initial_capital),
        "final_capital": float(final_capital),
        "total_pnl": total_pnl,
        "total_pnl_pct": total_pnl / float(initial_capital) * 100.0,
    }

    if n == 0:
        out.update(
            {
                "win_rate": 0.0,
                "avg_pnl": 0.0,
                "best_pnl": 0.0,
                "worst_pnl": 0.0,
                "max_drawdown": 0.0,
                "max_drawdown_pct": 0.0,
            }
        )
        return out

    pnl = pd.to_numeric(rt["pnl"], errors="coerce").fillna(0.0)
    dd_amount, dd_pct = max_drawdown(capital_curve(initial_capital, trades))
    out.update(
        {
            "win_rate": float((pnl > 0).mean()),
            "avg_pnl": float(pnl.mean()),
            "best_pnl": float(pnl.max()),
            "worst_pnl": float(pnl.min()),
            "max_drawdown": dd_amount,
            "max_drawdown_pct": dd_pct,
        }
    )
    return out
