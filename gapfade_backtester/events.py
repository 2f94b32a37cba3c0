"""
Simulation Events
-----------------
Discrete, ordered records emitted by the engine for presenters and loggers.
The engine never formats text; `report` turns these into console lines.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar

from .models import Side, Trade, TradeType


@dataclass(frozen=True)
class Event:
    kind: ClassVar[str] = "event"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind}
        for k, v in asdict(self).items():
            if isinstance(v, (Side, TradeType)):
                v = v.value
            out[k] = v
        return out


@dataclass(frozen=True)
class SessionStarted(Event):
    kind: ClassVar[str] = "session_started"

    instrument: str
    previous_day_close: float
    initial_capital: float
    stop_loss_amount: float
    take_profit_amount: float


@dataclass(frozen=True)
class WarmingUp(Event):
    kind: ClassVar[str] = "warming_up"

    timestamp: str


@dataclass(frozen=True)
class CandleProcessed(Event):
    """Emitted once the gating EMA is ready."""

    kind: ClassVar[str] = "candle"

    timestamp: str
    open: float
    high: float
    low: float
    close: float
    ema_fast: float
    ema_slow: float


@dataclass(frozen=True)
class SignalDetected(Event):
    kind: ClassVar[str] = "signal"

    timestamp: str
    side: Side = Side.SELL


@dataclass(frozen=True)
class SignalSkipped(Event):
    """A signal dropped by policy (cap reached, position open, zero size)."""

    kind: ClassVar[str] = "signal_skipped"

    timestamp: str
    reason: str


@dataclass(frozen=True)
class TradeExecuted(Event):
    kind: ClassVar[str] = "trade_executed"

    timestamp: str
    type: TradeType
    side: Side
    price: float
    quantity: int


@dataclass(frozen=True)
class TradeClosed(Event):
    kind: ClassVar[str] = "trade_closed"

    timestamp: str
    reason: str
    side: Side
    price: float
    quantity: int
    pnl: float
    pnl_pct_of_capital: float


@dataclass(frozen=True)
class PositionMarked(Event):
    kind: ClassVar[str] = "position"

    timestamp: str
    side: Side
    quantity: int
    unrealized_pnl: float


@dataclass(frozen=True)
class SessionEnded(Event):
    kind: ClassVar[str] = "session_ended"

    timestamp: str
    reason: str


@dataclass(frozen=True)
class RunSummary(Event):
    kind: ClassVar[str] = "summary"

    instrument: str
    total_trades: int
    initial_capital: float
    final_capital: float
    total_pnl: float
    total_pnl_pct: float
    trades: tuple[Trade, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "instrument": self.instrument,
            "total_trades": self.total_trades,
            "initial_capital": self.initial_capital,
            "final_capital": self.final_capital,
            "total_pnl": self.total_pnl,
            "total_pnl_pct": self.total_pnl_pct,
            "trades": [t.to_dict() for t in self.trades],
        }
