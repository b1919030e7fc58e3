"""
Heikin-Ashi candle transform.

    haClose = (open + high + low + close) / 4
    haOpen  = (prev.open + prev.close) / 2      if a previous HA bar exists
            = (open + close) / 2                otherwise
    haHigh  = max(high, haOpen, haClose)
    haLow   = min(low, haOpen, haClose)

Each output depends on the previous output, so bars must be fed strictly
in time order. Pure function; no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from sim_core.contracts import Bar


@dataclass(frozen=True)
class HeikinAshiBar:
    open: float
    high: float
    low: float
    close: float

    @property
    def bullish(self) -> bool:
        return self.close > self.open


def heikin_ashi(bar: Bar, prev: HeikinAshiBar | None) -> HeikinAshiBar:
    """Transform *bar* given the previous Heikin-Ashi bar (None for the first)."""
    ha_close = (bar.open + bar.high + bar.low + bar.close) / 4
    if prev is not None:
        ha_open = (prev.open + prev.close) / 2
    else:
        ha_open = (bar.open + bar.close) / 2
    return HeikinAshiBar(
        open=ha_open,
        high=max(bar.high, ha_open, ha_close),
        low=min(bar.low, ha_open, ha_close),
        close=ha_close,
    )


def heikin_ashi_series(bars: list[Bar]) -> list[HeikinAshiBar]:
    """Transform a whole ordered sequence."""
    out: list[HeikinAshiBar] = []
    prev: HeikinAshiBar | None = None
    for bar in bars:
        prev = heikin_ashi(bar, prev)
        out.append(prev)
    return out
