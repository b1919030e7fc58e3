"""
Indicator state fold and entry-signal modes.

IndicatorState is an immutable value advanced once per bar; it carries the
OBV running total, the tail of OBV history needed for the signal, and the
current and previous Heikin-Ashi bars.

The entry-signal mode is resolved once from the two indicator toggles
(SignalMode.resolve); each mode is a pure function of an IndicatorSnapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from sim_core.contracts import Bar, TradeType
from sim_core.heikin_ashi import HeikinAshiBar, heikin_ashi
from sim_core.obv import accumulate_obv, obv_signal


@dataclass(frozen=True)
class IndicatorState:
    """Fold state for the bar-by-bar indicator recurrence.

    ``obv_tail`` keeps only the last ``max(2 * period, 1)`` totals; the OBV
    signal never looks further back, and the count check is unaffected
    because the tail always holds at least ``period + 1`` values once the
    full history does.
    """

    prev_bar: Bar
    obv_total: float = 0.0
    obv_tail: tuple[float, ...] = ()
    ha: HeikinAshiBar | None = None
    prev_ha: HeikinAshiBar | None = None

    @classmethod
    def seed(cls, first_bar: Bar) -> IndicatorState:
        """Initial state: the first bar only supplies the previous close."""
        return cls(prev_bar=first_bar)

    def advance(self, bar: Bar, obv_period: int) -> IndicatorState:
        total = accumulate_obv(self.obv_total, self.prev_bar.close, bar.close)
        keep = max(2 * obv_period, 1)
        tail = (self.obv_tail + (total,))[-keep:]
        return IndicatorState(
            prev_bar=bar,
            obv_total=total,
            obv_tail=tail,
            ha=heikin_ashi(bar, self.ha),
            prev_ha=self.ha,
        )


@dataclass(frozen=True)
class IndicatorSnapshot:
    """What the entry and exit rules see on one bar."""

    bar: Bar
    prev_bar: Bar
    ha: HeikinAshiBar
    prev_ha: HeikinAshiBar | None
    obv_signal: int

    @property
    def bullish_ha(self) -> bool:
        return self.ha.bullish


def snapshot(prev: IndicatorState, current: IndicatorState, obv_period: int) -> IndicatorSnapshot:
    """Build the snapshot for the bar that moved *prev* to *current*."""
    if current.ha is None:
        raise ValueError("snapshot needs a state advanced past the first bar")
    return IndicatorSnapshot(
        bar=current.prev_bar,
        prev_bar=prev.prev_bar,
        ha=current.ha,
        prev_ha=current.prev_ha,
        obv_signal=obv_signal(current.obv_tail, obv_period),
    )


@dataclass(frozen=True)
class EntrySignal:
    buy: bool
    sell: bool


def _both(s: IndicatorSnapshot) -> EntrySignal:
    return EntrySignal(
        buy=s.bullish_ha and s.obv_signal > 0,
        sell=not s.bullish_ha and s.obv_signal < 0,
    )


def _heikin_ashi_only(s: IndicatorSnapshot) -> EntrySignal:
    # A missing (or zero) previous HA close counts as rising and as falling.
    no_prev = s.prev_ha is None or not s.prev_ha.close
    return EntrySignal(
        buy=s.bullish_ha and (no_prev or s.ha.close > s.prev_ha.close),
        sell=not s.bullish_ha and (no_prev or s.ha.close < s.prev_ha.close),
    )


def _obv_only(s: IndicatorSnapshot) -> EntrySignal:
    return EntrySignal(buy=s.obv_signal > 0, sell=s.obv_signal < 0)


def _momentum(s: IndicatorSnapshot) -> EntrySignal:
    bar, prev = s.bar, s.prev_bar
    return EntrySignal(
        buy=bar.close > prev.close and bar.close > bar.open,
        sell=bar.close < prev.close and bar.close < bar.open,
    )


class SignalMode(str, Enum):
    """Entry-signal variant selected by the indicator toggles."""

    OBV_AND_HEIKIN_ASHI = "obv_and_heikin_ashi"
    HEIKIN_ASHI = "heikin_ashi"
    OBV = "obv"
    MOMENTUM = "momentum"

    @classmethod
    def resolve(cls, use_obv: bool, use_heikin_ashi: bool) -> SignalMode:
        if use_obv and use_heikin_ashi:
            return cls.OBV_AND_HEIKIN_ASHI
        if use_heikin_ashi:
            return cls.HEIKIN_ASHI
        if use_obv:
            return cls.OBV
        return cls.MOMENTUM

    @property
    def evaluate(self) -> Callable[[IndicatorSnapshot], EntrySignal]:
        return _ENTRY_RULES[self]


_ENTRY_RULES: dict[SignalMode, Callable[[IndicatorSnapshot], EntrySignal]] = {
    SignalMode.OBV_AND_HEIKIN_ASHI: _both,
    SignalMode.HEIKIN_ASHI: _heikin_ashi_only,
    SignalMode.OBV: _obv_only,
    SignalMode.MOMENTUM: _momentum,
}


def select_side(signal: EntrySignal, allow_long: bool, allow_short: bool) -> TradeType | None:
    """Side to open, if any. Buy is checked first, so buy wins a tie."""
    if signal.buy and allow_long:
        return TradeType.LONG
    if signal.sell and allow_short:
        return TradeType.SHORT
    return None
