"""
Risk & Sizing Policy
--------------------
All-in position sizing from current capital, a hard daily trade cap, and
stop-loss / take-profit thresholds expressed as a fraction of INITIAL capital.

Thresholds are fixed at construction: risk is capped relative to the account,
independent of how large the open position is.
"""

from __future__ import annotations

from decimal import Decimal
import math

from .config import RiskCfg


def _pct_of(amount: float, pct: float) -> float:
    """amount * pct evaluated on the decimal literals (100000 * 0.07 == 7000.0)."""
    return float(Decimal(repr(float(amount))) * Decimal(repr(float(pct))))


class RiskState:
    def __init__(self, capital: float, cfg: RiskCfg | None = None) -> None:
        cfg = cfg or RiskCfg()
        self.initial_capital = float(capital)
        self.current_capital = float(capital)
        self.trades_today = 0
        self.max_daily_trades = int(cfg.max_daily_trades)

        self.stop_loss_amount = _pct_of(self.initial_capital, cfg.stop_loss_pct)
        self.take_profit_amount = _pct_of(self.initial_capital, cfg.take_profit_pct)

    def calculate_position_size(self, entry_price: float) -> int:
        """Whole units affordable with current capital; 0 for non-positive prices."""
        if entry_price <= 0 or self.current_capital <= 0:
            return 0
        return int(math.floor(self.current_capital / entry_price))

    def can_trade(self) -> bool:
        return self.trades_today < self.max_daily_trades

    def record_trade(self) -> None:
        self.trades_today += 1

    def is_stop_loss_hit(self, unrealized_pnl: float) -> bool:
        return unrealized_pnl <= -self.stop_loss_amount

    def is_take_profit_hit(self, unrealized_pnl: float) -> bool:
        return unrealized_pnl >= self.take_profit_amount

    def update_capital(self, pnl: float) -> None:
        self.current_capital += pnl

    @property
    def total_pnl(self) -> float:
        return self.current_capital - self.initial_capital

    @property
    def total_pnl_pct(self) -> float:
        return self.total_pnl / self.initial_capital * 100.0
