"""
Run Metadata
------------
Records what produced a set of artifacts (code version, config, input data,
result fingerprints) so a backtest can be traced and re-run.
"""

from __future__ import annotations

import datetime
import json
import platform
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__
from .engine import RunResult
from .models import MarketSession
from .repro import (
    dataclass_to_dict,
    events_fingerprint,
    session_fingerprint,
    sha256_file,
    sha256_text,
    stable_json_dumps,
    trades_fingerprint,
    utc_now_iso,
)


def try_git_sha() -> Optional[str]:
    """Current commit SHA, or None outside a git checkout."""
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.decode("utf-8").strip()


def env_info() -> Dict[str, Any]:
    return {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "package_version": __version__,
    }


def build_run_meta(
    *,
    cmd: str,
    argv: list[str],
    run_id: str,
    outputs_dir: str | Path,
    config_path: Optional[str] = None,
    config_obj: Optional[Any] = None,
    data_path: Optional[str] = None,
    session: Optional[MarketSession] = None,
    result: Optional[RunResult] = None,
    hash_data: bool = False,
) -> Dict[str, Any]:
    meta: Dict[str, Any] = {
        "cmd": cmd,
        "run_id": run_id,
        "argv": argv,
        "outputs_dir": str(Path(outputs_dir)),
        "timestamp_utc": utc_now_iso(),
        "git_sha": try_git_sha(),
        "env": env_info(),
    }

    if config_path:
        meta["config_path"] = config_path
        meta["config_sha256"] = sha256_file(config_path)

    if config_obj is not None:
        cfg_dict = dataclass_to_dict(config_obj)
        meta["config_dump"] = cfg_dict
        meta["config_dump_sha256"] = sha256_text(stable_json_dumps(cfg_dict))

    if data_path:
        p = Path(data_path)
        meta["data_path"] = data_path
        try:
            stat = p.stat()
        except OSError:
            meta["data_mtime_utc"] = None
        else:
            meta["data_size_bytes"] = stat.st_size
            meta["data_mtime_utc"] = datetime.datetime.fromtimestamp(
                stat.st_mtime, tz=datetime.timezone.utc
            ).isoformat()

        if hash_data:
            meta["data_sha256"] = sha256_file(data_path)

    if session is not None:
        meta["instrument"] = session.instrument
        meta["candles"] = len(session.candles)
        meta["session_sha256"] = session_fingerprint(session)

    if result is not None:
        meta["outcome"] = result.outcome.value
        meta["error"] = result.error
        meta["trades_sha256"] = trades_fingerprint(result.trades)
        meta["events_sha256"] = events_fingerprint(result.events)

    return meta


def write_run_meta(outputs_dir: str | Path, meta: Dict[str, Any]) -> Path:
    out_dir = Path(outputs_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    path = out_dir / "run_meta.json"
    path.write_text(json.dumps(meta, indent=2), encoding="utf-8")
    return path
