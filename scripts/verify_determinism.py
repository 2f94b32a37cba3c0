# Script to verify the determinism of a full backtest run (artifacts included)
from __future__ import annotations

import json
import sys
from pathlib import Path

import pandas as pd

from gapfade_backtester.cli import main as cli_main


def read_json(p: Path) -> dict:
    return json.loads(p.read_text(encoding="utf-8"))


def df_fingerprint(df: pd.DataFrame) -> str:
    h = pd.util.hash_pandas_object(df, index=True).values
    return str(int(h.sum()))


def main() -> None:
    data = sys.argv[1] if len(sys.argv) > 1 else "data/sample_session.json"
    out_dir = "outputs/determinism"

    for run_id in ("run_a", "run_b"):
        code = cli_main(
            [
                "backtest",
                "--data",
                data,
                "--config",
                "configs/base.yaml",
                "--out-dir",
                out_dir,
                "--run-id",
                run_id,
                "--quiet",
            ]
        )
        if code != 0:
            raise SystemExit(f"FAIL: backtest exited with {code}")

    p1 = Path(out_dir) / "run_a"
    p2 = Path(out_dir) / "run_b"

    if read_json(p1 / "summary.json") != read_json(p2 / "summary.json"):
        raise SystemExit("FAIL: summary.json differs across identical runs")

    t1 = pd.read_parquet(p1 / "trades.parquet")
    t2 = pd.read_parquet(p2 / "trades.parquet")
    if df_fingerprint(t1) != df_fingerprint(t2):
        raise SystemExit("FAIL: trades.parquet differs across identical runs")

    print("PASS: determinism verified (summary + trades match).")


if __name__ == "__main__":
    main()
