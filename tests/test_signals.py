"""Tests for indicator state, signal-mode resolution and entry rules."""

import pytest

from sim_core.contracts import Bar, TradeType
from sim_core.heikin_ashi import HeikinAshiBar
from sim_core.signals import (
    EntrySignal,
    IndicatorSnapshot,
    IndicatorState,
    SignalMode,
    select_side,
    snapshot,
)

T0 = 1704153600  # 2024-01-02 00:00 UTC


def _bar(i: int, o: float, h: float, l: float, c: float) -> Bar:
    return Bar(time=T0 + i * 3600, open=o, high=h, low=l, close=c)


def _snap_after(bars, period: int = 1) -> IndicatorSnapshot:
    state = IndicatorState.seed(bars[0])
    prev = state
    for bar in bars[1:]:
        prev, state = state, state.advance(bar, period)
    return snapshot(prev, state, period)


class TestIndicatorState:
    def test_seed_has_no_history(self) -> None:
        state = IndicatorState.seed(_bar(0, 10.0, 10.0, 10.0, 10.0))
        assert state.obv_total == 0.0
        assert state.obv_tail == ()
        assert state.ha is None

    def test_advance_is_immutable(self) -> None:
        seed = IndicatorState.seed(_bar(0, 10.0, 10.0, 10.0, 10.0))
        nxt = seed.advance(_bar(1, 10.0, 11.0, 10.0, 11.0), 5)
        assert seed.obv_total == 0.0
        assert nxt.obv_total == 1.0
        assert nxt.prev_ha is None
        assert nxt.ha is not None

    def test_snapshot_requires_advanced_state(self) -> None:
        seed = IndicatorState.seed(_bar(0, 10.0, 10.0, 10.0, 10.0))
        with pytest.raises(ValueError, match="advanced"):
            snapshot(seed, seed, 1)

    def test_tail_keeps_two_periods(self) -> None:
        state = IndicatorState.seed(_bar(0, 10.0, 10.0, 10.0, 10.0))
        for i in range(1, 8):
            state = state.advance(_bar(i, 10.0, 10.0 + i, 10.0, 10.0 + i), 2)
        assert len(state.obv_tail) == 4
        assert state.obv_tail[-1] == state.obv_total


class TestSignalMode:
    def test_resolve(self) -> None:
        assert SignalMode.resolve(True, True) is SignalMode.OBV_AND_HEIKIN_ASHI
        assert SignalMode.resolve(False, True) is SignalMode.HEIKIN_ASHI
        assert SignalMode.resolve(True, False) is SignalMode.OBV
        assert SignalMode.resolve(False, False) is SignalMode.MOMENTUM

    def test_both_requires_agreement(self) -> None:
        bars = [
            _bar(0, 10.0, 10.0, 10.0, 10.0),
            _bar(1, 10.0, 10.0, 10.0, 10.0),
            _bar(2, 10.0, 10.5, 10.0, 10.5),
        ]
        snap = _snap_after(bars)
        assert snap.bullish_ha
        assert snap.obv_signal == 1
        assert SignalMode.OBV_AND_HEIKIN_ASHI.evaluate(snap) == EntrySignal(buy=True, sell=False)

    def test_both_without_obv_history_is_silent(self) -> None:
        bars = [_bar(0, 10.0, 10.0, 10.0, 10.0), _bar(1, 10.0, 11.0, 10.0, 11.0)]
        snap = _snap_after(bars)
        assert snap.obv_signal == 0
        assert SignalMode.OBV_AND_HEIKIN_ASHI.evaluate(snap) == EntrySignal(buy=False, sell=False)

    def test_heikin_ashi_first_bar_counts_as_both_directions(self) -> None:
        # No previous HA bar: a bearish first HA bar is a sell, a bullish one a buy.
        bearish = _snap_after([_bar(0, 10.0, 10.0, 10.0, 10.0), _bar(1, 10.0, 10.0, 8.8, 9.0)])
        assert bearish.prev_ha is None
        assert SignalMode.HEIKIN_ASHI.evaluate(bearish) == EntrySignal(buy=False, sell=True)

        bullish = _snap_after([_bar(0, 10.0, 10.0, 10.0, 10.0), _bar(1, 10.0, 11.2, 10.0, 11.0)])
        assert SignalMode.HEIKIN_ASHI.evaluate(bullish) == EntrySignal(buy=True, sell=False)

    def test_heikin_ashi_zero_previous_close_counts_as_missing(self) -> None:
        snap = IndicatorSnapshot(
            bar=_bar(1, 10.0, 11.0, 10.0, 11.0),
            prev_bar=_bar(0, 10.0, 10.0, 10.0, 10.0),
            ha=HeikinAshiBar(open=0.5, high=11.0, low=0.0, close=10.5),
            prev_ha=HeikinAshiBar(open=0.0, high=0.0, low=0.0, close=0.0),
            obv_signal=0,
        )
        assert SignalMode.HEIKIN_ASHI.evaluate(snap) == EntrySignal(buy=True, sell=False)

    def test_heikin_ashi_needs_rising_close(self) -> None:
        snap = IndicatorSnapshot(
            bar=_bar(1, 10.0, 11.0, 10.0, 11.0),
            prev_bar=_bar(0, 10.0, 10.0, 10.0, 10.0),
            ha=HeikinAshiBar(open=10.0, high=11.0, low=10.0, close=10.4),
            prev_ha=HeikinAshiBar(open=10.0, high=11.0, low=10.0, close=10.6),
            obv_signal=0,
        )
        assert SignalMode.HEIKIN_ASHI.evaluate(snap) == EntrySignal(buy=False, sell=False)

    def test_obv_only(self) -> None:
        snap = IndicatorSnapshot(
            bar=_bar(1, 10.0, 10.0, 10.0, 10.0),
            prev_bar=_bar(0, 10.0, 10.0, 10.0, 10.0),
            ha=HeikinAshiBar(open=10.0, high=10.0, low=10.0, close=10.0),
            prev_ha=None,
            obv_signal=-1,
        )
        assert SignalMode.OBV.evaluate(snap) == EntrySignal(buy=False, sell=True)

    def test_momentum(self) -> None:
        up = _snap_after([_bar(0, 10.0, 10.0, 10.0, 10.0), _bar(1, 10.0, 10.6, 10.0, 10.5)])
        down = _snap_after([_bar(0, 10.0, 10.0, 10.0, 10.0), _bar(1, 10.0, 10.0, 9.4, 9.5)])
        # Higher close than previous but a down bar: no signal.
        mixed = _snap_after([_bar(0, 10.0, 10.0, 10.0, 10.0), _bar(1, 10.8, 10.8, 10.4, 10.5)])
        assert SignalMode.MOMENTUM.evaluate(up) == EntrySignal(buy=True, sell=False)
        assert SignalMode.MOMENTUM.evaluate(down) == EntrySignal(buy=False, sell=True)
        assert SignalMode.MOMENTUM.evaluate(mixed) == EntrySignal(buy=False, sell=False)


class TestSelectSide:
    def test_buy_wins_tie(self) -> None:
        assert select_side(EntrySignal(True, True), True, True) is TradeType.LONG

    def test_sell_when_long_disallowed(self) -> None:
        assert select_side(EntrySignal(True, True), False, True) is TradeType.SHORT

    def test_disallowed_side_is_ignored(self) -> None:
        assert select_side(EntrySignal(True, False), False, True) is None
        assert select_side(EntrySignal(False, True), True, False) is None

    def test_no_signal(self) -> None:
        assert select_side(EntrySignal(False, False), True, True) is None
