"""
Configuration Schemas
---------------------
Dataclasses holding every tunable of a run (EMA periods, gap threshold,
SL/TP percentages, trade cap, market-close cutoff) plus the YAML loader.
Defaults reproduce the reference strategy exactly.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, get_type_hints
from pathlib import Path
import yaml

from .models import hhmm_to_minutes
from .validator import validate_keys

WARMUP_MODES = ("first_price", "full_period")


@dataclass
class IndicatorCfg:
    """EMA periods. The slow EMA gates the pattern detector."""

    fast_period: int = 3
    slow_period: int = 5
    warmup: str = "first_price"

    def __post_init__(self) -> None:
        if self.fast_period < 1 or self.slow_period < 1:
            raise ValueError(
                "Configuration Error: EMA periods must be >= 1 "
                f"(fast={self.fast_period}, slow={self.slow_period})"
            )
        if self.warmup not in WARMUP_MODES:
            raise ValueError(
                f"Configuration Error: Invalid warmup mode {self.warmup!r}; "
                f"expected one of {list(WARMUP_MODES)}"
            )


@dataclass
class PatternCfg:
    """Gap-up requirement for the anchor candle, as a fraction of previous close."""

    gap_threshold: float = 0.03

    def __post_init__(self) -> None:
        if self.gap_threshold < 0:
            raise ValueError(
                f"Configuration Error: gap_threshold must be >= 0, got {self.gap_threshold}"
            )


@dataclass
class RiskCfg:
    """Capital-relative exits and the daily trade cap."""

    stop_loss_pct: float = 0.02
    take_profit_pct: float = 0.07
    max_daily_trades: int = 2

    def __post_init__(self) -> None:
        if not 0 < self.stop_loss_pct < 1:
            raise ValueError(
                f"Configuration Error: stop_loss_pct must be in (0, 1), got {self.stop_loss_pct}"
            )
        if not 0 < self.take_profit_pct < 1:
            raise ValueError(
                "Configuration Error: take_profit_pct must be in (0, 1), "
                f"got {self.take_profit_pct}"
            )
        if self.max_daily_trades < 0:
            raise ValueError(
                "Configuration Error: max_daily_trades must be >= 0, "
                f"got {self.max_daily_trades}"
            )


@dataclass
class SessionCfg:
    """Session lifecycle controls."""

    market_close: str = "15:00"
    end_when_flat: bool = False

    def __post_init__(self) -> None:
        try:
            mins = hhmm_to_minutes(self.market_close)
        except ValueError:
            raise ValueError(
                f"Configuration Error: market_close must be 'HH:MM', got {self.market_close!r}"
            ) from None
        if not 0 <= mins < 24 * 60:
            raise ValueError(
                f"Configuration Error: market_close out of range: {self.market_close!r}"
            )


@dataclass
class Config:
    """Root configuration object."""

    indicators: IndicatorCfg = field(default_factory=IndicatorCfg)
    pattern: PatternCfg = field(default_factory=PatternCfg)
    risk: RiskCfg = field(default_factory=RiskCfg)
    session: SessionCfg = field(default_factory=SessionCfg)


def _build_dc(cls: type[Any], data: dict[str, Any]) -> Any:
    """Instantiates a (nested) dataclass from a dict so __post_init__ checks run."""
    hints = get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        ftype = hints.get(f.name)
        if is_dataclass(ftype) and isinstance(value, dict):
            value = _build_dc(ftype, value)
        kwargs[f.name] = value
    return cls(**kwargs)


def config_from_dict(data: dict[str, Any] | None) -> Config:
    """Validates keys then builds a Config; missing sections keep their defaults."""
    data = data or {}
    validate_keys(data, Config)
    return _build_dc(Config, data)


def load_config(path: str | Path | None) -> Config:
    """
    Loads configuration from a YAML file, or returns defaults when path is None.
    Unknown keys and out-of-range values raise ValueError.
    """
    if path is None:
        return Config()

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config Error: expected a mapping at root of {path!r}")

    return config_from_dict(data)
