"""
Gapfade CLI

Glue layer: config -> session data -> engine -> presenter + artifacts.
Exit codes: 0 completed, 1 validation failed / unusable input, 2 non-deterministic.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any
from .config import Config, load_config
from .data_io import check_integrity, load_market_session
from .engine import RunResult, run_session
from .metrics import compute_summary, round_trips, trades_frame
from .models import MarketSession
from .report import render
from .repro import events_fingerprint, trades_fingerprint
from .run_meta import build_run_meta, write_run_meta

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VALIDATION_FAILED = 1
EXIT_NON_DETERMINISTIC = 2


# -----------------------------
# Helpers
# -----------------------------
def _now_run_id() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _json_default(x: Any) -> Any:
    if is_dataclass(x):
        return asdict(x)
    if hasattr(x, "value"):
        return x.value
    return str(x)


def _write_json(path: Path, obj: Any) -> None:
    path.write_text(json.dumps(obj, indent=2, default=_json_default), encoding="utf-8")


def _print_compact_json(obj: Any) -> None:
    print(json.dumps(obj, default=_json_default, separators=(",", ":")))


def _read_inputs(
    config_path: str | None,
    data_path: str,
    *,
    instrument: str | None,
    previous_close: float | None,
    capital: float | None,
) -> tuple[Config, MarketSession]:
    cfg = load_config(config_path)
    session = load_market_session(
        data_path,
        instrument=instrument,
        previous_day_close=previous_close,
        capital=capital,
    )
    logger.info(
        "Loaded %d candles for %s from %s", len(session.candles), session.instrument, data_path
    )
    check_integrity(session)
    return cfg, session


def _load_inputs(
    config_path: str | None,
    data_path: str,
    *,
    instrument: str | None,
    previous_close: float | None,
    capital: float | None,
) -> tuple[Config, MarketSession] | None:
    """Config + session, or None (after printing the error) when either is unusable."""
    try:
        return _read_inputs(
            config_path,
            data_path,
            instrument=instrument,
            previous_close=previous_close,
            capital=capital,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return None


def _write_artifacts(
    root: Path,
    result: RunResult,
    *,
    write_trades: bool,
    write_events: bool,
) -> dict[str, Any]:
    s = result.summary
    if s is None:
        raise RuntimeError(f"run finished as {result.outcome.value!r} without a summary")
    summary = compute_summary(
        s.initial_capital, s.final_capital, s.trades, total_trades=s.total_trades
    )
    summary["instrument"] = s.instrument
    summary["trades_sha256"] = trades_fingerprint(s.trades)

    _write_json(root / "summary.json", summary)

    if write_trades:
        trades = trades_frame(s.trades)
        trades.to_csv(root / "trades.csv", index=False)
        trades.to_parquet(root / "trades.parquet", index=False)
        round_trips(s.trades).to_csv(root / "round_trips.csv", index=False)

    if write_events:
        with open(root / "events.jsonl", "w", encoding="utf-8") as f:
            for ev in result.events:
                f.write(json.dumps(ev.to_dict(), default=_json_default) + "\n")

    return summary


# -----------------------------
# Commands
# -----------------------------
def cmd_backtest(
    data_path: str,
    *,
    config_path: str | None = None,
    out_dir: str = "outputs/backtest",
    run_id: str | None = None,
    instrument: str | None = None,
    previous_close: float | None = None,
    capital: float | None = None,
    write_trades: bool = True,
    write_events: bool = True,
    quiet: bool = False,
    currency: str = "₹",
    hash_data: bool = False,
    argv: list[str] | None = None,
) -> int:
    loaded = _load_inputs(
        config_path,
        data_path,
        instrument=instrument,
        previous_close=previous_close,
        capital=capital,
    )
    if loaded is None:
        return EXIT_VALIDATION_FAILED
    cfg, session = loaded

    result = run_session(session, cfg)
    if not result.ok:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return EXIT_VALIDATION_FAILED

    if not quiet:
        for line in render(result.events, currency=currency):
            print(line)

    run_id = run_id or _now_run_id()
    root = Path(out_dir) / run_id
    root.mkdir(parents=True, exist_ok=True)

    summary = _write_artifacts(
        root, result, write_trades=write_trades, write_events=write_events
    )

    meta = build_run_meta(
        cmd="backtest",
        argv=argv or [],
        run_id=run_id,
        outputs_dir=root,
        config_path=config_path,
        config_obj=cfg,
        data_path=data_path,
        session=session,
        result=result,
        hash_data=hash_data,
    )
    meta.update({"write_trades": write_trades, "write_events": write_events})
    write_run_meta(root, meta)

    _print_compact_json({"run_id": run_id, "artifacts_dir": str(root), **summary})
    return EXIT_OK


def cmd_verify_determinism(
    data_path: str,
    *,
    config_path: str | None = None,
    runs: int = 2,
    instrument: str | None = None,
    previous_close: float | None = None,
    capital: float | None = None,
) -> int:
    """Runs the same session repeatedly with fresh state and compares fingerprints."""
    loaded = _load_inputs(
        config_path,
        data_path,
        instrument=instrument,
        previous_close=previous_close,
        capital=capital,
    )
    if loaded is None:
        return EXIT_VALIDATION_FAILED
    cfg, session = loaded

    prints: list[tuple[str, str]] = []
    for _ in range(max(2, runs)):
        result = run_session(session, cfg)
        if not result.ok:
            print(f"ERROR: {result.error}", file=sys.stderr)
            return EXIT_VALIDATION_FAILED
        prints.append(
            (trades_fingerprint(result.trades), events_fingerprint(result.events))
        )

    if len(set(prints)) != 1:
        print("FAIL: trade log / events differ across identical runs", file=sys.stderr)
        return EXIT_NON_DETERMINISTIC

    _print_compact_json(
        {"deterministic": True, "runs": len(prints), "trades_sha256": prints[0][0]}
    )
    return EXIT_OK


def _add_session_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--data", required=True, help="Session .json or candle .csv/.parquet")
    p.add_argument("--config", default=None, help="YAML config (defaults if omitted)")
    p.add_argument("--instrument", default=None)
    p.add_argument("--previous-close", type=float, default=None)
    p.add_argument("--capital", type=float, default=None)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Gap-fade intraday backtester")
    p.add_argument("-v", "--verbose", action="count", default=0)
    sub = p.add_subparsers(dest="cmd", required=True)

    # ---------------- backtest ----------------
    p_bt = sub.add_parser("backtest", help="Replay one session")
    _add_session_args(p_bt)
    p_bt.add_argument("--out-dir", default="outputs/backtest")
    p_bt.add_argument("--run-id", default=None)
    p_bt.add_argument("--currency", default="₹")
    p_bt.add_argument(
        "--write-trades", action=argparse.BooleanOptionalAction, default=True
    )
    p_bt.add_argument(
        "--write-events", action=argparse.BooleanOptionalAction, default=True
    )
    p_bt.add_argument("--quiet", action="store_true", help="Only print the JSON line.")
    p_bt.add_argument(
        "--hash-data",
        action="store_true",
        help="Compute SHA256 of the data file.",
    )

    # ---------------- verify-determinism ----------------
    p_vd = sub.add_parser(
        "verify-determinism", help="Run a session repeatedly and compare results"
    )
    _add_session_args(p_vd)
    p_vd.add_argument("--runs", type=int, default=2)

    args = p.parse_args(argv)

    level = logging.WARNING - 10 * min(int(args.verbose), 2)
    logging.basicConfig(
        level=level, format="%(asctime)s [%(levelname)s] %(name)s - %(message)s"
    )

    argv_list = list(argv) if argv is not None else sys.argv[1:]

    # Input errors are reported by the commands; anything raised mid-run propagates.
    if args.cmd == "backtest":
        return cmd_backtest(
            args.data,
            config_path=args.config,
            out_dir=args.out_dir,
            run_id=args.run_id,
            instrument=args.instrument,
            previous_close=args.previous_close,
            capital=args.capital,
            write_trades=bool(args.write_trades),
            write_events=bool(args.write_events),
            quiet=bool(args.quiet),
            currency=args.currency,
            hash_data=bool(args.hash_data),
            argv=argv_list,
        )

    return cmd_verify_determinism(
        args.data,
        config_path=args.config,
        runs=int(args.runs),
        instrument=args.instrument,
        previous_close=args.previous_close,
        capital=args.capital,
    )


if __name__ == "__main__":
    raise SystemExit(main())
