"""
Incremental Indicators
----------------------
Exponential moving average updated one closing price at a time.
"""

from __future__ import annotations


class EMA:
    """
    EMA_t = alpha * price_t + (1 - alpha) * EMA_{t-1}, alpha = 2 / (period + 1).

    The first update seeds the average with the price itself. `min_samples`
    controls readiness: 1 (default) means ready after the first price, `period`
    means ready only once a full window of prices has been seen.
    """

    def __init__(self, period: int, min_samples: int = 1) -> None:
        if period < 1:
            raise ValueError(f"EMA period must be >= 1, got {period!r}")
        self.period = int(period)
        self.alpha = 2.0 / (self.period + 1.0)
        self.min_samples = max(1, int(min_samples))
        self._value = 0.0
        self._count = 0

    def update(self, price: float) -> float:
        if self._count == 0:
            self._value = float(price)
        else:
            self._value = float(price) * self.alpha + self._value * (1.0 - self.alpha)
        self._count += 1
        return self._value

    @property
    def value(self) -> float:
        return self._value

    @property
    def count(self) -> int:
        return self._count

    def is_ready(self) -> bool:
        return self._count >= self.min_samples

    def reset(self) -> None:
        self._value = 0.0
        self._count = 0

    def __repr__(self) -> str:
        return f"EMA(period={self.period}, value={self._value:.4f}, count={self._count})"


def build_ema(period: int, warmup: str = "first_price") -> EMA:
    """Creates an EMA whose readiness follows the configured warmup mode."""
    if warmup == "full_period":
        return EMA(period, min_samples=period)
    if warmup == "first_price":
        return EMA(period)
    raise ValueError(f"Unknown warmup mode: {warmup!r}")
