"""
Input validation run by callers before the engine.

The engine itself trusts its input; a non-finite price would only surface
as NaN in the result. These checks reject such input up front.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Sequence

from sim_core.contracts import Bar

PRICE_FIELDS = ("open", "high", "low", "close")

# Unix seconds representable as a UTC datetime: 1970-01-01 .. 9999-12-31T23:59:59.
MIN_TIME = 0
MAX_TIME = 253402300799


class ValidationError(ValueError):
    """Raised when bars or settings are unusable for a simulation run."""


def _to_price(record: Mapping[str, Any], name: str, index: int) -> float:
    if name not in record:
        raise ValidationError(f"bar {index}: missing field '{name}'")
    raw = record[name]
    if isinstance(raw, bool):
        raise ValidationError(f"bar {index}: field '{name}' must be a number, got bool")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"bar {index}: field '{name}' is not numeric: {raw!r}") from exc
    if not math.isfinite(value):
        raise ValidationError(f"bar {index}: field '{name}' is not finite: {raw!r}")
    return value


def _to_time(record: Mapping[str, Any], index: int) -> int:
    if "time" not in record:
        raise ValidationError(f"bar {index}: missing field 'time'")
    raw = record["time"]
    if isinstance(raw, bool):
        raise ValidationError(f"bar {index}: 'time' must be an integer, got bool")
    if isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            raise ValidationError(f"bar {index}: 'time' must be an integer, got {raw!r}")
        return int(raw)
    if not isinstance(raw, int):
        raise ValidationError(f"bar {index}: 'time' must be an integer, got {raw!r}")
    return raw


def parse_bars(records: Iterable[Mapping[str, Any]]) -> list[Bar]:
    """Convert ``{time, open, high, low, close}`` mappings into validated Bars."""
    bars: list[Bar] = []
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ValidationError(f"bar {i}: expected an object, got {type(record).__name__}")
        bars.append(
            Bar(
                time=_to_time(record, i),
                open=_to_price(record, "open", i),
                high=_to_price(record, "high", i),
                low=_to_price(record, "low", i),
                close=_to_price(record, "close", i),
            )
        )
    validate_bars(bars)
    return bars


def validate_bars(bars: Sequence[Bar]) -> None:
    """Reject empty input, non-finite prices, out-of-range and non-increasing timestamps."""
    if not bars:
        raise ValidationError("no bars supplied")
    prev_time: int | None = None
    for i, bar in enumerate(bars):
        for name in PRICE_FIELDS:
            if not math.isfinite(getattr(bar, name)):
                raise ValidationError(f"bar {i}: field '{name}' is not finite")
        if not MIN_TIME <= bar.time <= MAX_TIME:
            raise ValidationError(
                f"bar {i}: time {bar.time} is outside {MIN_TIME}..{MAX_TIME} (Unix seconds expected)"
            )
        if prev_time is not None and bar.time <= prev_time:
            raise ValidationError(
                f"bar {i}: time {bar.time} is not after previous bar time {prev_time}"
            )
        prev_time = bar.time
