"""
Console Presenter
-----------------
Renders engine events as human-readable lines. Pure formatting: nothing here
feeds back into the simulation.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .events import (
    CandleProcessed,
    Event,
    PositionMarked,
    RunSummary,
    SessionEnded,
    SessionStarted,
    SignalDetected,
    SignalSkipped,
    TradeClosed,
    TradeExecuted,
    WarmingUp,
)
from .models import TradeType

RULE = "=" * 64
THIN_RULE = "-" * 60


def _money(x: float, currency: str) -> str:
    return f"{currency}{x:.2f}"


def format_event(event: Event, *, currency: str = "₹") -> list[str]:
    """Lines for one event (possibly none)."""
    if isinstance(event, SessionStarted):
        return [
            RULE,
            f"Starting Trading Session for {event.instrument}",
            f"Previous Day Close: {_money(event.previous_day_close, currency)}",
            f"Initial Capital: {_money(event.initial_capital, currency)}",
            f"Stop Loss: {_money(event.stop_loss_amount, currency)}",
            f"Take Profit: {_money(event.take_profit_amount, currency)}",
            RULE,
        ]
    if isinstance(event, WarmingUp):
        return [f"[{event.timestamp}] Warming up indicators..."]
    if isinstance(event, CandleProcessed):
        return [
            f"[{event.timestamp}] O:{event.open:.2f} H:{event.high:.2f} "
            f"L:{event.low:.2f} C:{event.close:.2f} | "
            f"EMA3:{event.ema_fast:.2f} EMA5:{event.ema_slow:.2f}"
        ]
    if isinstance(event, SignalDetected):
        return ["*** SIGNAL DETECTED: Two-Candle Pattern Breakdown ***"]
    if isinstance(event, SignalSkipped):
        return [f"[INFO] {event.reason}"]
    if isinstance(event, TradeExecuted):
        return [
            f">>> [TRADE EXECUTED] {event.type.value} | {event.side.value} "
            f"{event.quantity} @ {event.price:.2f} at {event.timestamp}"
        ]
    if isinstance(event, TradeClosed):
        sign = "+" if event.pnl >= 0 else ""
        return [
            f"<<< [TRADE CLOSED] {event.reason} | P&L: {_money(event.pnl, currency)} "
            f"({sign}{event.pnl_pct_of_capital:.2f}%) at {event.timestamp}"
        ]
    if isinstance(event, PositionMarked):
        return [
            f"    [Position] OPEN | Unrealized P&L: "
            f"{_money(event.unrealized_pnl, currency)}"
        ]
    if isinstance(event, SessionEnded):
        return [f"[SESSION ENDED] {event.reason} at {event.timestamp}"]
    if isinstance(event, RunSummary):
        return format_summary(event, currency=currency)
    return []


def format_summary(summary: RunSummary, *, currency: str = "₹") -> list[str]:
    mark = "+" if summary.total_pnl >= 0 else "-"
    lines = [
        RULE,
        "END OF DAY SUMMARY".center(64),
        RULE,
        f"Instrument:          {summary.instrument}",
        f"Total Trades:        {summary.total_trades}",
        f"Initial Capital:     {_money(summary.initial_capital, currency)}",
        f"Final Capital:       {_money(summary.final_capital, currency)}",
        f"Total P&L:           {_money(summary.total_pnl, currency)} [{mark}]",
        f"Return:              {summary.total_pnl_pct:.2f}%",
        RULE,
    ]
    if summary.trades:
        lines += ["Trade Log:", THIN_RULE]
        for t in summary.trades:
            row = (
                f"{t.timestamp} | {t.type.value} | {t.side.value} | "
                f"{t.quantity} @ {_money(t.price, currency)}"
            )
            if t.type is TradeType.EXIT:
                row += f" | P&L: {_money(t.pnl, currency)}"
            lines.append(row)
        lines.append(THIN_RULE)
    return lines


def render(events: Iterable[Event], *, currency: str = "₹") -> Iterator[str]:
    for ev in events:
        yield from format_event(ev, currency=currency)
