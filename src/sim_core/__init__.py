"""
sim-core: pure backtest simulation engine.

No I/O, no network, no side effects. Consumes ordered OHLC bars plus
Settings, replays a long/short Heikin-Ashi / OBV strategy, and produces a
SimulationResult. Fully deterministic and unit-testable.
"""

from sim_core.contracts import (
    Bar,
    DailyPerformance,
    ExitReason,
    Position,
    SimulationResult,
    Trade,
    TradeType,
)
from sim_core.engine import run_backtest
from sim_core.validation import ValidationError, parse_bars, validate_bars

__all__ = [
    "Bar",
    "DailyPerformance",
    "ExitReason",
    "Position",
    "run_backtest",
    "SimulationResult",
    "Trade",
    "TradeType",
    "ValidationError",
    "parse_bars",
    "validate_bars",
]
