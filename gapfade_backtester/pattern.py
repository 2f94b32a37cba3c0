"""
Pattern Detector
----------------
Two-candle gap-up exhaustion pattern, evaluated one candle at a time.

1. SEEKING_FIRST_CANDLE: wait for an anchor candle that gapped up by at least
   `gap_threshold` over the previous close AND whose low holds above the slow EMA.
2. ARMED: fire a (short) signal on the first later candle whose low breaks the
   anchor's low, then go back to seeking.

The anchor is never replaced while armed, and the anchoring candle itself can
never be the breakdown candle.
"""

from __future__ import annotations

from enum import Enum
import logging

from .config import IndicatorCfg, PatternCfg
from .indicators import EMA, build_ema
from .models import Candle

logger = logging.getLogger(__name__)


class DetectorState(str, Enum):
    SEEKING_FIRST_CANDLE = "SEEKING_FIRST_CANDLE"
    ARMED = "ARMED"


class PatternDetector:
    def __init__(
        self,
        pattern_cfg: PatternCfg | None = None,
        indicator_cfg: IndicatorCfg | None = None,
    ) -> None:
        pattern_cfg = pattern_cfg or PatternCfg()
        indicator_cfg = indicator_cfg or IndicatorCfg()

        self.gap_threshold = float(pattern_cfg.gap_threshold)
        self.fast_ema: EMA = build_ema(indicator_cfg.fast_period, indicator_cfg.warmup)
        self.slow_ema: EMA = build_ema(indicator_cfg.slow_period, indicator_cfg.warmup)

        self.previous_day_close = 0.0
        self.state = DetectorState.SEEKING_FIRST_CANDLE
        self.anchor: Candle | None = None

    def initialize(self, previous_day_close: float) -> None:
        """Starts a new session: clears the anchor and both indicators."""
        self.previous_day_close = float(previous_day_close)
        self.state = DetectorState.SEEKING_FIRST_CANDLE
        self.anchor = None
        self.fast_ema.reset()
        self.slow_ema.reset()

    @property
    def gap_level(self) -> float:
        return self.previous_day_close * (1.0 + self.gap_threshold)

    def is_ready(self) -> bool:
        return self.slow_ema.is_ready()

    def process(self, candle: Candle) -> bool:
        """Feeds one candle; returns True when the breakdown signal fires."""
        self.fast_ema.update(candle.close)
        self.slow_ema.update(candle.close)

        if not self.slow_ema.is_ready():
            return False

        if self.state is DetectorState.SEEKING_FIRST_CANDLE:
            gap_ok = candle.open >= self.gap_level
            strength_ok = candle.low > self.slow_ema.value
            if gap_ok and strength_ok:
                self.anchor = candle
                self.state = DetectorState.ARMED
                logger.debug(
                    "anchor captured at %s (low=%.4f, ema=%.4f)",
                    candle.timestamp,
                    candle.low,
                    self.slow_ema.value,
                )
            return False

        anchor = self.anchor
        if anchor is None:
            raise RuntimeError(f"detector ARMED without an anchor at {candle.timestamp}")
        if candle.low < anchor.low:
            logger.debug(
                "breakdown at %s: low %.4f < anchor low %.4f",
                candle.timestamp,
                candle.low,
                anchor.low,
            )
            self.state = DetectorState.SEEKING_FIRST_CANDLE
            self.anchor = None
            return True

        return False
