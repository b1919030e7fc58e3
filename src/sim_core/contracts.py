"""
Data contracts for sim-core: Bar, Position, Trade, SimulationResult.

sim-core consumes an ordered bar sequence plus Settings and produces a
SimulationResult. No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class TradeType(str, Enum):
    """Direction of a position."""

    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    """Why a position was closed."""

    STOP = "stop"
    TARGET = "target"
    SIGNAL = "signal"
    END = "end"


@dataclass(frozen=True)
class Bar:
    """OHLC bar; ``time`` is a Unix timestamp in seconds (UTC)."""

    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.time, tz=timezone.utc)

    def utc_date(self) -> str:
        """Calendar day of the bar in UTC, as ``YYYY-MM-DD``."""
        return self.timestamp.strftime("%Y-%m-%d")

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }


@dataclass(frozen=True)
class Position:
    """The single open position held during a replay."""

    type: TradeType
    entry_price: float      # spread adjusted
    entry_time: int


@dataclass(frozen=True)
class Trade:
    """A closed position. ``pnl`` is net of exit spread and fee."""

    type: TradeType
    entry_price: float
    exit_price: float
    entry_time: int
    exit_time: int
    pnl: float
    exit_reason: ExitReason

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "entryTime": self.entry_time,
            "exitTime": self.exit_time,
            "pnl": self.pnl,
            "exitReason": self.exit_reason.value,
        }


@dataclass(frozen=True)
class DailyPerformance:
    """Net P&L of the trades closed on one UTC calendar day."""

    date: str
    gain: float
    trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "gain": self.gain, "trades": self.trades}


@dataclass(frozen=True)
class SimulationResult:
    """Aggregate output of one backtest run."""

    initial_capital: float
    final_capital: float
    total_gain: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    neutral_trades: int
    win_rate: float
    gains_only: float
    losses_only: float
    gain_loss_ratio: float
    avg_gain_per_trade: float
    best_trade: float
    worst_trade: float
    max_drawdown: float     # <= 0
    max_runup: float        # >= 0
    time_in_market: float   # percent of bars holding a position
    avg_orders_per_day: float
    daily_performance: list[DailyPerformance] = field(default_factory=list)
    equity: list[float] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping with the camelCase keys used on the wire."""
        return {
            "initialCapital": self.initial_capital,
            "finalCapital": self.final_capital,
            "totalGain": self.total_gain,
            "totalTrades": self.total_trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
            "neutralTrades": self.neutral_trades,
            "winRate": self.win_rate,
            "gainsOnly": self.gains_only,
            "lossesOnly": self.losses_only,
            "gainLossRatio": self.gain_loss_ratio,
            "avgGainPerTrade": self.avg_gain_per_trade,
            "bestTrade": self.best_trade,
            "worstTrade": self.worst_trade,
            "maxDrawdown": self.max_drawdown,
            "maxRunup": self.max_runup,
            "timeInMarket": self.time_in_market,
            "avgOrdersPerDay": self.avg_orders_per_day,
            "dailyPerformance": [d.to_dict() for d in self.daily_performance],
            "equity": list(self.equity),
            "trades": [t.to_dict() for t in self.trades],
        }
