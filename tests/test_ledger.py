"""
Tests for gapfade_backtester.ledger
-----------------------------------
Coverage:
- Unrealized PnL for SELL and BUY positions.
- Single-position discipline.
- Exit records booked together with the close.
"""

import pytest

from gapfade_backtester.ledger import Position, PositionError, TradeLedger
from gapfade_backtester.models import Side, TradeType


def test_unrealized_pnl_by_side():
    pos = Position()
    assert pos.unrealized_pnl(100.0) == 0.0

    pos.open(Side.SELL, 100.0, 10, "09:25")
    assert pos.unrealized_pnl(95.0) == 50.0
    assert pos.unrealized_pnl(102.0) == -20.0

    pos.close()
    pos.open(Side.BUY, 100.0, 10, "09:30")
    assert pos.unrealized_pnl(95.0) == -50.0


def test_close_resets_fields():
    pos = Position()
    pos.open(Side.SELL, 100.0, 10, "09:25")
    pos.close()
    assert pos.is_open is False
    assert pos.quantity == 0
    assert pos.entry_price == 0.0
    assert pos.entry_timestamp == ""


def test_open_and_close_book_trades():
    ledger = TradeLedger()
    entry = ledger.open_position(Side.SELL, 105.4, 948, "09:25")
    assert entry.type is TradeType.ENTRY
    assert entry.pnl == 0.0

    exit_ = ledger.close_position(105.0, "09:30", "End of Market Data")
    assert exit_.type is TradeType.EXIT
    assert exit_.side is Side.SELL
    assert exit_.quantity == 948
    assert exit_.pnl == (105.4 - 105.0) * 948
    assert exit_.reason == "End of Market Data"

    assert ledger.trades == (entry, exit_)
    assert not ledger.has_open_position


def test_second_open_is_rejected():
    ledger = TradeLedger()
    ledger.open_position(Side.SELL, 100.0, 5, "09:25")
    with pytest.raises(PositionError, match="already open"):
        ledger.open_position(Side.SELL, 101.0, 5, "09:30")
    assert len(ledger.trades) == 1


def test_close_when_flat_and_zero_quantity_rejected():
    ledger = TradeLedger()
    with pytest.raises(PositionError, match="no open position"):
        ledger.close_position(100.0, "09:30", "Stop Loss Hit")
    with pytest.raises(PositionError, match="quantity"):
        ledger.open_position(Side.SELL, 100.0, 0, "09:30")
    assert ledger.trades == ()


def test_trade_log_view_is_immutable():
    ledger = TradeLedger()
    ledger.open_position(Side.SELL, 100.0, 5, "09:25")
    view = ledger.trades
    with pytest.raises(AttributeError):
        view.append(None)  # type: ignore[attr-defined]
