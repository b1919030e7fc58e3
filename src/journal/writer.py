"""
Structured journal: append-only JSON lines. One record per backtest run, closed trade, or optimization.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "to_dict"):
        return _serialize(obj.to_dict())
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def backtest(self, run_id: str, asset: str, timeframe: str, source: str, settings: Any, result: Any, **extra: Any) -> None:
        """Full run record: settings plus the camelCase result (equity, daily performance, trades)."""
        self._write(
            "backtest",
            {"run_id": run_id, "asset": asset, "timeframe": timeframe, "source": source, "settings": settings, "result": result, **extra},
        )

    def trade(self, run_id: str, asset: str, trade: Any, **extra: Any) -> None:
        self._write("trade", {"run_id": run_id, "asset": asset, "trade": trade, **extra})

    def optimization(self, asset: str, timeframe: str, metric: str, iterations: int, best_values: dict, best_score: float, **extra: Any) -> None:
        self._write(
            "optimization",
            {"asset": asset, "timeframe": timeframe, "metric": metric, "iterations": iterations, "best_values": best_values, "best_score": best_score, **extra},
        )
