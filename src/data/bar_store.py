"""
Persist and load OHLC bars (SQLite). Times are Unix seconds (UTC).

Also records when each asset/timeframe pair was last fetched so callers
can treat the stored bars as a cache with a per-timeframe TTL.
"""

import sqlite3
import time as _time
from pathlib import Path
from typing import Sequence

from sim_core.contracts import Bar

# Seconds a fetched series stays fresh, per timeframe.
CACHE_TTL: dict[str, int] = {
    "1m": 60,
    "5m": 5 * 60,
    "15m": 15 * 60,
    "30m": 30 * 60,
    "1h": 60 * 60,
    "4h": 4 * 60 * 60,
    "1d": 24 * 60 * 60,
}
DEFAULT_TTL = CACHE_TTL["1h"]


class BarStore:
    """SQLite-backed bar storage. One file per path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path))

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS bars (
                    asset TEXT NOT NULL,
                    timeframe TEXT NOT NULL,
                    time INTEGER NOT NULL,
                    open REAL NOT NULL,
                    high REAL NOT NULL,
                    low REAL NOT NULL,
                    close REAL NOT NULL,
                    PRIMARY KEY (asset, timeframe, time)
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS fetches (
                    asset TEXT NOT NULL,
                    timeframe TEXT NOT NULL,
                    fetched_at REAL NOT NULL,
                    source TEXT NOT NULL,
                    PRIMARY KEY (asset, timeframe)
                )
                """
            )

    def write_bars(
        self,
        asset: str,
        timeframe: str,
        bars: Sequence[Bar],
        *,
        source: str = "",
        fetched_at: float | None = None,
    ) -> None:
        """Upsert bars (by asset, timeframe, time) and stamp the fetch time."""
        stamp = _time.time() if fetched_at is None else fetched_at
        with self._conn() as c:
            c.executemany(
                """
                INSERT OR REPLACE INTO bars (asset, timeframe, time, open, high, low, close)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [(asset, timeframe, b.time, b.open, b.high, b.low, b.close) for b in bars],
            )
            c.execute(
                "INSERT OR REPLACE INTO fetches (asset, timeframe, fetched_at, source) VALUES (?, ?, ?, ?)",
                (asset, timeframe, stamp, source),
            )

    def get_last_bars(self, asset: str, timeframe: str, n: int) -> list[Bar]:
        """Return the last n bars (by time) in ascending order."""
        with self._conn() as c:
            rows = c.execute(
                "SELECT time, open, high, low, close FROM bars "
                "WHERE asset = ? AND timeframe = ? ORDER BY time DESC LIMIT ?",
                (asset, timeframe, n),
            ).fetchall()
        return [Bar(time=t, open=o, high=h, low=l, close=c) for t, o, h, l, c in reversed(rows)]

    def count_bars(self, asset: str, timeframe: str) -> int:
        """Return the total number of bars stored for an asset/timeframe pair."""
        with self._conn() as c:
            row = c.execute(
                "SELECT COUNT(*) FROM bars WHERE asset = ? AND timeframe = ?",
                (asset, timeframe),
            ).fetchone()
        return row[0] if row else 0

    def last_fetch(self, asset: str, timeframe: str) -> tuple[float, str] | None:
        """(fetched_at, source) of the last write for this pair, or None."""
        with self._conn() as c:
            row = c.execute(
                "SELECT fetched_at, source FROM fetches WHERE asset = ? AND timeframe = ?",
                (asset, timeframe),
            ).fetchone()
        return (row[0], row[1]) if row else None

    def is_fresh(self, asset: str, timeframe: str, *, now: float | None = None) -> bool:
        """True when the pair was fetched within its timeframe's TTL."""
        last = self.last_fetch(asset, timeframe)
        if last is None:
            return False
        current = _time.time() if now is None else now
        return current - last[0] < CACHE_TTL.get(timeframe, DEFAULT_TTL)
