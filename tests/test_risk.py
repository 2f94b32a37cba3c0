"""
Tests for gapfade_backtester.risk
---------------------------------
Coverage:
- Capital-relative SL/TP thresholds and their inclusive boundaries.
- Position sizing (floor, zero for bad prices, compounding).
- Daily trade cap.
"""

import numpy as np
import pytest

from gapfade_backtester.config import RiskCfg
from gapfade_backtester.risk import RiskState


def test_thresholds_from_initial_capital():
    risk = RiskState(100000.0)
    assert risk.stop_loss_amount == 2000.0
    assert risk.take_profit_amount == 7000.0


def test_stop_loss_boundary_is_inclusive():
    risk = RiskState(100000.0)
    assert risk.is_stop_loss_hit(-2000.0) is True
    assert risk.is_stop_loss_hit(-1999.99) is False
    assert risk.is_stop_loss_hit(-5000.0) is True


def test_take_profit_boundary_is_inclusive():
    risk = RiskState(100000.0)
    assert risk.is_take_profit_hit(7000.0) is True
    assert risk.is_take_profit_hit(6999.99) is False


def test_thresholds_do_not_follow_capital():
    risk = RiskState(100000.0)
    risk.update_capital(-50000.0)
    assert risk.stop_loss_amount == 2000.0
    assert risk.take_profit_amount == 7000.0


def test_position_size_floor_and_bad_prices():
    risk = RiskState(100000.0)
    assert risk.calculate_position_size(105.4) == 948
    assert risk.calculate_position_size(100000.0) == 1
    assert risk.calculate_position_size(100000.01) == 0
    assert risk.calculate_position_size(0.0) == 0
    assert risk.calculate_position_size(-10.0) == 0


def test_position_size_monotone_non_increasing():
    risk = RiskState(250000.0)
    prices = np.linspace(0.5, 5000.0, 400)
    sizes = np.array([risk.calculate_position_size(float(p)) for p in prices])

    assert (sizes >= 0).all()
    assert all(isinstance(risk.calculate_position_size(float(p)), int) for p in prices[:5])
    assert (np.diff(sizes) <= 0).all()


def test_sizing_uses_current_capital():
    risk = RiskState(100000.0)
    risk.update_capital(10000.0)
    assert risk.calculate_position_size(110.0) == 1000
    assert risk.total_pnl == 10000.0
    assert risk.total_pnl_pct == pytest.approx(10.0)


def test_daily_trade_cap():
    risk = RiskState(100000.0)
    assert risk.can_trade()
    risk.record_trade()
    assert risk.can_trade()
    risk.record_trade()
    assert not risk.can_trade()


def test_custom_risk_cfg():
    risk = RiskState(
        50000.0, RiskCfg(stop_loss_pct=0.01, take_profit_pct=0.05, max_daily_trades=1)
    )
    assert risk.stop_loss_amount == 500.0
    assert risk.take_profit_amount == 2500.0
    risk.record_trade()
    assert not risk.can_trade()
