"""
Position & Trade Ledger
-----------------------
Single open position plus the append-only execution log.

Every close goes through `TradeLedger.close_position`, which books the EXIT
record in the same call, so each close is paired with exactly one exit trade.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import Side, Trade, TradeType


class PositionError(RuntimeError):
    """Raised when the ledger is asked to break single-position discipline."""


@dataclass
class Position:
    is_open: bool = False
    side: Side = Side.BUY
    entry_price: float = 0.0
    quantity: int = 0
    entry_timestamp: str = ""

    def open(self, side: Side, price: float, quantity: int, timestamp: str) -> None:
        self.is_open = True
        self.side = side
        self.entry_price = float(price)
        self.quantity = int(quantity)
        self.entry_timestamp = timestamp

    def close(self) -> None:
        self.is_open = False
        self.entry_price = 0.0
        self.quantity = 0
        self.entry_timestamp = ""

    def unrealized_pnl(self, current_price: float) -> float:
        """Mark-to-market PnL at `current_price` (0.0 when flat)."""
        if not self.is_open:
            return 0.0
        if self.side is Side.BUY:
            return (current_price - self.entry_price) * self.quantity
        return (self.entry_price - current_price) * self.quantity


class TradeLedger:
    def __init__(self) -> None:
        self.position = Position()
        self._trades: list[Trade] = []

    @property
    def trades(self) -> tuple[Trade, ...]:
        return tuple(self._trades)

    @property
    def has_open_position(self) -> bool:
        return self.position.is_open

    def open_position(
        self, side: Side, price: float, quantity: int, timestamp: str
    ) -> Trade:
        if self.position.is_open:
            raise PositionError(
                f"cannot open {side.value} at {timestamp}: a position is already open "
                f"since {self.position.entry_timestamp}"
            )
        if quantity <= 0:
            raise PositionError(f"quantity must be > 0, got {quantity!r}")

        self.position.open(side, price, quantity, timestamp)
        trade = Trade(
            timestamp=timestamp,
            side=side,
            type=TradeType.ENTRY,
            price=float(price),
            quantity=int(quantity),
        )
        self._trades.append(trade)
        return trade

    def close_position(self, price: float, timestamp: str, reason: str) -> Trade:
        if not self.position.is_open:
            raise PositionError(f"cannot close at {timestamp}: no open position")

        pnl = self.position.unrealized_pnl(price)
        trade = Trade(
            timestamp=timestamp,
            side=self.position.side,
            type=TradeType.EXIT,
            price=float(price),
            quantity=self.position.quantity,
            pnl=pnl,
            reason=reason,
        )
        self._trades.append(trade)
        self.position.close()
        return trade
