"""
Tests for gapfade_backtester.metrics
------------------------------------
Coverage:
- trades_frame / round_trips shapes, including empty logs.
- max_drawdown on a known curve.
- compute_summary against an engine run.
"""

import pandas as pd
import pytest

from gapfade_backtester.engine import simulate
from gapfade_backtester.metrics import (
    capital_curve,
    compute_summary,
    max_drawdown,
    round_trips,
    trades_frame,
)
from gapfade_backtester.models import Side, Trade, TradeType


def _trip(t_in, t_out, entry, exit_, qty, reason="Stop Loss Hit"):
    return [
        Trade(t_in, Side.SELL, TradeType.ENTRY, entry, qty),
        Trade(t_out, Side.SELL, TradeType.EXIT, exit_, qty, pnl=(entry - exit_) * qty, reason=reason),
    ]


def test_max_drawdown_known_curve():
    amount, pct = max_drawdown(pd.Series([100.0, 90.0, 95.0, 80.0, 120.0]))
    assert amount == 20.0
    assert pct == pytest.approx(20.0)


def test_max_drawdown_empty():
    assert max_drawdown(pd.Series([], dtype=float)) == (0.0, 0.0)
    assert max_drawdown(None) == (0.0, 0.0)


def test_empty_frames_keep_columns():
    assert list(trades_frame([]).columns)[:3] == ["timestamp", "type", "side"]
    rt = round_trips([])
    assert rt.empty
    assert "exit_reason" in rt.columns


def test_round_trips_pairs_entries_with_exits():
    trades = _trip("09:25", "09:40", 105.0, 107.0, 10) + _trip(
        "10:00", "10:30", 110.0, 100.0, 10, reason="Take Profit Hit"
    )
    rt = round_trips(trades)
    assert len(rt) == 2
    assert rt.loc[0, "pnl"] == -20.0
    assert rt.loc[1, "exit_reason"] == "Take Profit Hit"
    assert list(capital_curve(1000.0, trades)) == [1000.0, 980.0, 1080.0]


def test_compute_summary_stats():
    trades = _trip("09:25", "09:40", 105.0, 107.0, 10) + _trip(
        "10:00", "10:30", 110.0, 100.0, 10
    )
    s = compute_summary(1000.0, 1080.0, trades)
    assert s["total_trades"] == 2
    assert s["round_trips"] == 2
    assert s["total_pnl"] == 80.0
    assert s["win_rate"] == 0.5
    assert s["best_pnl"] == 100.0
    assert s["worst_pnl"] == -20.0
    assert s["max_drawdown"] == 20.0
    assert s["max_drawdown_pct"] == pytest.approx(2.0)


def test_compute_summary_no_trades():
    s = compute_summary(1000.0, 1000.0, [])
    assert s["total_trades"] == 0
    assert s["win_rate"] == 0.0
    assert s["max_drawdown"] == 0.0


def test_summary_agrees_with_engine(gap_session):
    res = simulate(gap_session)
    s = compute_summary(
        res.summary.initial_capital,
        res.summary.final_capital,
        res.trades,
        total_trades=res.summary.total_trades,
    )
    assert s["total_trades"] == 1
    assert s["round_trips"] == 1
    assert s["final_capital"] == res.summary.final_capital
    assert trades_frame(res.trades)["type"].tolist() == ["ENTRY", "EXIT"]
