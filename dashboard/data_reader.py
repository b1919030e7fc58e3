"""
Read-only data access for the botsim dashboard.
Reads backtest and optimization records from the JSONL journal.
"""

import json
import os
from pathlib import Path
from typing import Any


def _journal_path() -> Path:
    """Journal file: repo root / data / journal.jsonl, or BOTSIM_DASHBOARD_JOURNAL if set."""
    if env := os.environ.get("BOTSIM_DASHBOARD_JOURNAL"):
        return Path(env)
    return Path(__file__).resolve().parent.parent / "data" / "journal.jsonl"


def read_journal_events(
    event_type: str | None = None,
    limit: int = 50,
    path: Path | None = None,
) -> list[dict[str, Any]]:
    """
    Read the last `limit` matching journal events (backtest, trade, optimization).
    Returns list of parsed JSON objects (newest first). Unparseable lines are skipped.
    """
    journal = path or _journal_path()
    if not journal.exists():
        return []
    out: list[dict[str, Any]] = []
    try:
        with open(journal) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if event_type is None or obj.get("event") == event_type:
                    out.append(obj)
    except OSError:
        return []
    chosen = out[-limit:] if limit else out
    chosen.reverse()
    return chosen


def list_backtest_runs(limit: int = 50, path: Path | None = None) -> list[dict[str, Any]]:
    """Summary rows for recent backtest runs, newest first."""
    rows = []
    for e in read_journal_events("backtest", limit=limit, path=path):
        result = e.get("result") or {}
        rows.append(
            {
                "run_id": e.get("run_id", ""),
                "ts_utc": (e.get("ts_utc") or "")[:19],
                "asset": e.get("asset", ""),
                "timeframe": e.get("timeframe", ""),
                "source": e.get("source", ""),
                "total_gain": result.get("totalGain", 0.0),
                "trades": result.get("totalTrades", 0),
                "win_rate": result.get("winRate", 0.0),
            }
        )
    return rows


def get_backtest_run(run_id: str, path: Path | None = None) -> dict[str, Any] | None:
    """Full journal record for one run, or None."""
    for e in read_journal_events("backtest", limit=0, path=path):
        if e.get("run_id") == run_id:
            return e
    return None
