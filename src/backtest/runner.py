"""
Backtest runner: validate input, run the sim_core engine, report events.

The engine trusts its input; this module is the caller-facing wrapper
that rejects unusable bars and settings first. ``simulate_request``
implements the request/response contract used by the CLI and any
transport in front of it: ``{"candles": [...], "settings": {...}}`` in,
JSON-ready result dict out.
"""

from __future__ import annotations

import logging
import time as _time
from typing import Any, Callable, Mapping, Sequence

from config.sim_settings import Settings, load_settings, settings_from_request
from sim_core.contracts import Bar, SimulationResult
from sim_core.engine import run_backtest
from sim_core.validation import ValidationError, parse_bars, validate_bars

logger = logging.getLogger("botsim.backtest")


def run_simulation(
    bars: Sequence[Bar],
    settings: Settings | None = None,
    *,
    journal_callback: Callable[[str, dict], None] | None = None,
) -> SimulationResult:
    """Validate *bars* and replay them through the engine.

    Parameters
    ----------
    bars:
        Chronological bars, oldest first. Must be non-empty with strictly
        increasing times.
    settings:
        Simulation settings. Loaded from the packaged defaults if None.
    journal_callback:
        Optional callback for event journaling. Receives ``("trade",
        {"trade": Trade})`` per closed trade, then ``("complete",
        {"result": SimulationResult, "elapsed_ms": float})``.

    Raises
    ------
    ValidationError
        If *bars* is empty or malformed.
    """
    validate_bars(bars)
    if settings is None:
        settings = load_settings()

    started = _time.perf_counter()
    result = run_backtest(bars, settings)
    elapsed_ms = (_time.perf_counter() - started) * 1000

    logger.info(
        "Simulated %s %s: %d bars, %d trades, gain %.2f (%.1f ms)",
        settings.asset, settings.timeframe, len(bars),
        result.total_trades, result.total_gain, elapsed_ms,
    )
    if journal_callback:
        for trade in result.trades:
            journal_callback("trade", {"trade": trade})
        journal_callback("complete", {"result": result, "elapsed_ms": elapsed_ms})
    return result


def simulate_request(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Run one backtest request and return the camelCase result mapping.

    The payload carries bars under ``candles`` (or ``bars``) and an
    optional ``settings`` object of camelCase overrides.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(f"request must be an object, got {type(payload).__name__}")
    records = payload.get("candles", payload.get("bars"))
    if records is None:
        raise ValidationError("request has no 'candles'")
    if not isinstance(records, (list, tuple)):
        raise ValidationError(f"'candles' must be a list, got {type(records).__name__}")

    bars = parse_bars(records)
    settings = settings_from_request(payload.get("settings"))
    return run_simulation(bars, settings).to_dict()
