"""
Simulation Engine
-----------------
Drives a MarketSession through the strategy one candle at a time.

Each `step` runs in a fixed order that must not be reordered:
    indicators/pattern -> exits (SL, TP, market close) -> entry -> position mark
Exits are evaluated before entries so a candle can never be processed twice for
the same position. All mutable state lives in one `SessionState` per run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import logging

from .config import Config
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
from .ledger import TradeLedger
from .models import Candle, MarketSession, Side, Trade, hhmm_to_minutes
from .pattern import PatternDetector
from .risk import RiskState

logger = logging.getLogger(__name__)

EXIT_STOP_LOSS = "Stop Loss Hit"
EXIT_TAKE_PROFIT = "Take Profit Hit"
EXIT_END_OF_DATA = "End of Market Data"

SKIP_TRADE_LIMIT = "Trade limit reached for the day"
SKIP_POSITION_OPEN = "Position already open - skipping signal"
SKIP_NO_CAPITAL = "Insufficient capital for position"


class SessionValidationError(ValueError):
    """The session cannot be simulated (empty data, non-positive capital, ...)."""


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    VALIDATION_FAILED = "validation-failed"


@dataclass
class SessionState:
    """Everything a run mutates. Owned by exactly one run; never shared."""

    instrument: str
    cfg: Config
    detector: PatternDetector
    risk: RiskState
    ledger: TradeLedger = field(default_factory=TradeLedger)
    status: SessionStatus = SessionStatus.ACTIVE
    last_candle: Candle | None = None
    candles_seen: int = 0

    @classmethod
    def start(cls, session: MarketSession, cfg: Config | None = None) -> "SessionState":
        cfg = cfg or Config()
        detector = PatternDetector(cfg.pattern, cfg.indicators)
        detector.initialize(session.previous_day_close)
        return cls(
            instrument=session.instrument,
            cfg=cfg,
            detector=detector,
            risk=RiskState(session.capital, cfg.risk),
        )

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def market_close_label(self) -> str:
        return f"Market Close ({self.cfg.session.market_close})"

    def is_past_market_close(self, candle: Candle) -> bool:
        return candle.minutes >= hhmm_to_minutes(self.cfg.session.market_close)


@dataclass(frozen=True)
class RunResult:
    outcome: RunOutcome
    events: tuple[Event, ...] = ()
    summary: RunSummary | None = None
    error: str | None = None

    @property
    def trades(self) -> tuple[Trade, ...]:
        return self.summary.trades if self.summary is not None else ()

    @property
    def ok(self) -> bool:
        return self.outcome is RunOutcome.COMPLETED


def validate_session(session: MarketSession) -> None:
    """Pre-run checks. Data anomalies inside candles are deliberately not checked."""
    if not session.candles:
        raise SessionValidationError(
            f"No candle data found for instrument {session.instrument!r}"
        )
    if not session.capital > 0:
        raise SessionValidationError(
            f"Invalid capital amount: {session.capital!r} (must be > 0)"
        )
    if not session.previous_day_close > 0:
        raise SessionValidationError(
            f"Invalid previous day close: {session.previous_day_close!r} (must be > 0)"
        )


def _close_position(
    state: SessionState, candle: Candle, reason: str, events: list[Event]
) -> None:
    trade = state.ledger.close_position(candle.close, candle.timestamp, reason)
    state.risk.update_capital(trade.pnl)
    logger.info(
        "%s closed at %s: %s, pnl=%.2f", state.instrument, candle.timestamp, reason, trade.pnl
    )
    events.append(
        TradeClosed(
            timestamp=candle.timestamp,
            reason=reason,
            side=trade.side,
            price=trade.price,
            quantity=trade.quantity,
            pnl=trade.pnl,
            pnl_pct_of_capital=trade.pnl / state.risk.initial_capital * 100.0,
        )
    )


def _check_exits(state: SessionState, candle: Candle, events: list[Event]) -> None:
    """At most one exit per candle, in priority order SL -> TP -> market close."""
    if not state.ledger.has_open_position:
        return

    unrealized = state.ledger.position.unrealized_pnl(candle.close)

    if state.risk.is_stop_loss_hit(unrealized):
        _close_position(state, candle, EXIT_STOP_LOSS, events)
        return

    if state.risk.is_take_profit_hit(unrealized):
        _close_position(state, candle, EXIT_TAKE_PROFIT, events)
        return

    if state.is_past_market_close(candle):
        _close_position(state, candle, state.market_close_label, events)
        _end_session(state, candle, state.market_close_label, events)


def _end_session(
    state: SessionState, candle: Candle, reason: str, events: list[Event]
) -> None:
    state.status = SessionStatus.ENDED
    events.append(SessionEnded(timestamp=candle.timestamp, reason=reason))


def _try_enter(state: SessionState, candle: Candle, events: list[Event]) -> None:
    """Opens a SELL at the signal candle's close if policy allows; never queues."""
    skip_reason: str | None = None
    quantity = 0

    if not state.risk.can_trade():
        skip_reason = SKIP_TRADE_LIMIT
    elif state.ledger.has_open_position:
        skip_reason = SKIP_POSITION_OPEN
    else:
        quantity = state.risk.calculate_position_size(candle.close)
        if quantity <= 0:
            skip_reason = SKIP_NO_CAPITAL

    if skip_reason is not None:
        logger.info("%s signal at %s ignored: %s", state.instrument, candle.timestamp, skip_reason)
        events.append(SignalSkipped(timestamp=candle.timestamp, reason=skip_reason))
        return

    trade = state.ledger.open_position(Side.SELL, candle.close, quantity, candle.timestamp)
    state.risk.record_trade()
    logger.info(
        "%s opened %s %d @ %.2f at %s",
        state.instrument,
        trade.side.value,
        trade.quantity,
        trade.price,
        trade.timestamp,
    )
    events.append(
        TradeExecuted(
            timestamp=trade.timestamp,
            type=trade.type,
            side=trade.side,
            price=trade.price,
            quantity=trade.quantity,
        )
    )


def step(state: SessionState, candle: Candle) -> tuple[SessionState, list[Event]]:
    """
    Advances the session by one candle. `state` is updated in place and returned
    together with the events emitted for that candle; callers that need a
    snapshot must copy it first. An ENDED session ignores further candles.
    """
    events: list[Event] = []
    if not state.is_active:
        return state, events

    state.last_candle = candle
    state.candles_seen += 1

    # 1) indicators + pattern
    detector = state.detector
    signal = detector.process(candle)
    if detector.is_ready():
        events.append(
            CandleProcessed(
                timestamp=candle.timestamp,
                open=candle.open,
                high=candle.high,
                low=candle.low,
                close=candle.close,
                ema_fast=detector.fast_ema.value,
                ema_slow=detector.slow_ema.value,
            )
        )
    else:
        events.append(WarmingUp(timestamp=candle.timestamp))
    logger.debug("%s candle %s signal=%s", state.instrument, candle.timestamp, signal)

    # 2) exits
    _check_exits(state, candle, events)

    if (
        state.is_active
        and state.cfg.session.end_when_flat
        and not state.ledger.has_open_position
        and state.is_past_market_close(candle)
    ):
        _end_session(state, candle, state.market_close_label, events)

    # 3) entry
    if signal and state.is_active:
        events.append(SignalDetected(timestamp=candle.timestamp))
        _try_enter(state, candle, events)

    # 4) status
    position = state.ledger.position
    if position.is_open:
        events.append(
            PositionMarked(
                timestamp=candle.timestamp,
                side=position.side,
                quantity=position.quantity,
                unrealized_pnl=position.unrealized_pnl(candle.close),
            )
        )

    return state, events


def finish(state: SessionState) -> tuple[list[Event], RunSummary]:
    """
    Force-closes any open position at the last processed candle and summarises.
    Returns the closing events (summary last) and the summary itself.
    """
    events: list[Event] = []
    if state.ledger.has_open_position and state.last_candle is not None:
        _close_position(state, state.last_candle, EXIT_END_OF_DATA, events)

    risk = state.risk
    summary = RunSummary(
        instrument=state.instrument,
        total_trades=risk.trades_today,
        initial_capital=risk.initial_capital,
        final_capital=risk.current_capital,
        total_pnl=risk.total_pnl,
        total_pnl_pct=risk.total_pnl_pct,
        trades=state.ledger.trades,
    )
    events.append(summary)
    return events, summary


def simulate(
    session: MarketSession,
    cfg: Config | None = None,
    *,
    should_abort: Callable[[], bool] | None = None,
) -> RunResult:
    """
    Runs a full session. Raises SessionValidationError before touching any candle
    if the input is unusable. `should_abort` is polled between candles; an aborted
    run is still force-closed and summarised.
    """
    validate_session(session)

    state = SessionState.start(session, cfg)
    risk = state.risk
    events: list[Event] = [
        SessionStarted(
            instrument=session.instrument,
            previous_day_close=session.previous_day_close,
            initial_capital=risk.initial_capital,
            stop_loss_amount=risk.stop_loss_amount,
            take_profit_amount=risk.take_profit_amount,
        )
    ]

    for candle in session.candles:
        if not state.is_active:
            break
        if should_abort is not None and should_abort():
            logger.warning(
                "%s run aborted by host after %d candles",
                session.instrument,
                state.candles_seen,
            )
            break
        state, emitted = step(state, candle)
        events.extend(emitted)

    closing, summary = finish(state)
    events.extend(closing)

    return RunResult(
        outcome=RunOutcome.COMPLETED, events=tuple(events), summary=summary
    )


def run_session(
    session: MarketSession,
    cfg: Config | None = None,
    *,
    should_abort: Callable[[], bool] | None = None,
) -> RunResult:
    """Host-facing wrapper: validation failures become an outcome, not an exception."""
    try:
        return simulate(session, cfg, should_abort=should_abort)
    except SessionValidationError as e:
        logger.error("validation failed: %s", e)
        return RunResult(outcome=RunOutcome.VALIDATION_FAILED, error=str(e))
