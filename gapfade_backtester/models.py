"""
Market Data & Trade Records
---------------------------
Immutable records consumed and produced by the simulation core:
- Candle / MarketSession: the replayed input.
- Side / TradeType / Trade: the append-only audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeType(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"


def hhmm_to_minutes(ts: str) -> int:
    """Converts an intraday "HH:MM" stamp to minutes since midnight."""
    hours, _, minutes = ts.strip().partition(":")
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class Candle:
    """One OHLC bar. Values are taken as-is; the engine never validates them."""

    timestamp: str
    open: float
    high: float
    low: float
    close: float

    @property
    def minutes(self) -> int:
        return hhmm_to_minutes(self.timestamp)


@dataclass(frozen=True)
class MarketSession:
    """Fully materialized input for one run."""

    instrument: str
    previous_day_close: float
    capital: float
    candles: tuple[Candle, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, "candles", tuple(self.candles))


@dataclass(frozen=True)
class Trade:
    """A single execution. Entries carry pnl=0.0; exits carry the realized PnL."""

    timestamp: str
    side: Side
    type: TradeType
    price: float
    quantity: int
    pnl: float = 0.0
    reason: str | None = None

    @property
    def is_entry(self) -> bool:
        return self.type is TradeType.ENTRY

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "side": self.side.value,
            "type": self.type.value,
            "price": float(self.price),
            "quantity": int(self.quantity),
            "pnl": float(self.pnl),
            "reason": self.reason,
        }
