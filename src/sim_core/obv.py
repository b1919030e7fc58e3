"""
Cumulative signed-price-delta oscillator ("OBV-like"; no volume is used).

For each bar after the first the running total moves by the close-to-close
change: up closes add ``close - prev_close``, down closes subtract
``prev_close - close``, unchanged closes leave it alone.

The signal compares the mean of the most recent ``period`` totals with the
mean of the ``period`` totals before them.

Pure functions; no I/O.
"""

from __future__ import annotations

from typing import Sequence


def accumulate_obv(total: float, prev_close: float, close: float) -> float:
    """Return the running total after a bar closing at *close*."""
    if close > prev_close:
        return total + (close - prev_close)
    if close < prev_close:
        return total - (prev_close - close)
    return total


def obv_series(closes: Sequence[float]) -> list[float]:
    """Running totals for every close after the first."""
    out: list[float] = []
    total = 0.0
    for prev_close, close in zip(closes, closes[1:]):
        total = accumulate_obv(total, prev_close, close)
        out.append(total)
    return out


def obv_signal(values: Sequence[float], period: int) -> int:
    """Direction of the accumulated totals: +1, -1, or 0.

    Parameters
    ----------
    values:
        Accumulated totals, oldest first.
    period:
        Lookback length for each of the two compared windows.

    Returns
    -------
    int
        0 when fewer than ``period + 1`` values exist. When the older
        window is empty, the sign of the latest value (+1 if positive,
        else -1). Otherwise +1 / -1 / 0 as the recent mean is greater,
        smaller, or equal to the older mean.
    """
    if len(values) < period + 1:
        return 0

    recent = list(values[-period:])
    older = list(values[-2 * period:-period])
    if not older:
        return 1 if values[-1] > 0 else -1

    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    if recent_avg > older_avg:
        return 1
    if recent_avg < older_avg:
        return -1
    return 0
