"""
Pytest Fixtures
---------------
Shared resources for testing.
- gap_session: the reference gap-up / breakdown session (one SELL entry).
- session_json: the same session written in the JSON input layout.
"""

from __future__ import annotations
import json
from pathlib import Path
import pytest

from tests.utils import GAP_ROWS, make_session

CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "base.yaml"


@pytest.fixture
def gap_session():
    """Warm-up, anchor, breakdown, then a flat candle (09:30)."""
    return make_session(GAP_ROWS + [("09:30", 105.4, 105.6, 105.0, 105.0)])


def _write_session(path: Path, capital: float = 100000.0) -> Path:
    rows = GAP_ROWS + [("09:30", 105.4, 105.6, 105.0, 105.0)]
    payload = {
        "instrument": "TEST",
        "previous_day_close": 100.0,
        "capital": capital,
        "candles": [
            {"timestamp": ts, "open": o, "high": h, "low": l, "close": c}
            for ts, o, h, l, c in rows
        ],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def session_json(tmp_path: Path) -> Path:
    return _write_session(tmp_path / "session.json")


@pytest.fixture
def broke_session_json(tmp_path: Path) -> Path:
    return _write_session(tmp_path / "broke.json", capital=0.0)


@pytest.fixture
def base_config_path() -> Path:
    return CONFIG_PATH
