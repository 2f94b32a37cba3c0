"""
Reproducibility Helpers
-----------------------
Stable serialization and hashing used to fingerprint inputs and results.
Two runs over the same session must produce the same result fingerprint.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, cast

from .events import Event
from .models import MarketSession, Trade


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def stable_json_dumps(obj: Any) -> str:
    """Sorted, compact JSON. Floats use repr so bit-level differences show up."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def sha256_file(path: str | Path, *, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for block in iter(lambda: f.read(chunk_size), b""):
            h.update(block)
    return h.hexdigest()


def dataclass_to_dict(dc: Any) -> Dict[str, Any]:
    if not is_dataclass(dc):
        raise TypeError("dataclass_to_dict expected a dataclass instance")
    return asdict(cast(Any, dc))


def session_fingerprint(session: MarketSession) -> str:
    payload = {
        "instrument": session.instrument,
        "previous_day_close": session.previous_day_close,
        "capital": session.capital,
        "candles": [dataclass_to_dict(c) for c in session.candles],
    }
    return sha256_text(stable_json_dumps(payload))


def trades_fingerprint(trades: Iterable[Trade]) -> str:
    return sha256_text(stable_json_dumps([t.to_dict() for t in trades]))


def events_fingerprint(events: Iterable[Event]) -> str:
    return sha256_text(stable_json_dumps([e.to_dict() for e in events]))
