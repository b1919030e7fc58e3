"""
Backtest engine: replay bars in order, one position at a time.

Bar 0 only seeds the previous close. For every later bar:

1. Advance the OBV and Heikin-Ashi fold state.
2. With a position open, test exits in priority order
   stop > target > Heikin-Ashi signal, and realize P&L on exit.
3. Otherwise evaluate the entry rule of the resolved SignalMode and open
   at most one position, paying the entry fee immediately.
4. Append capital to the equity curve.

A position still open after the last bar is closed at its close with
exit reason ``end``.

Pure function of (bars, settings); no I/O, no state kept between calls.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from sim_core.contracts import Bar, ExitReason, Position, SimulationResult, Trade, TradeType
from sim_core.costs import FORCED_CLOSE_CONTRACT_VALUE, CostModel
from sim_core.metrics import summarize
from sim_core.signals import IndicatorSnapshot, IndicatorState, SignalMode, select_side, snapshot

if TYPE_CHECKING:
    from config.sim_settings import Settings


@dataclass(frozen=True)
class ExitDecision:
    reason: ExitReason
    price_diff: float
    pnl: float              # before exit costs


def price_diff(position: Position, close: float) -> float:
    """Signed price move in the position's favour."""
    if position.type is TradeType.LONG:
        return close - position.entry_price
    return position.entry_price - close


def check_exit(
    position: Position,
    snap: IndicatorSnapshot,
    costs: CostModel,
    use_heikin_ashi: bool,
) -> ExitDecision | None:
    """First matching exit condition for *position* on this bar, if any."""
    diff = price_diff(position, snap.bar.close)
    pnl = costs.gross_pnl(diff)

    if diff <= -costs.stop_loss_distance:
        return ExitDecision(ExitReason.STOP, diff, pnl)
    if diff >= costs.take_profit_distance:
        return ExitDecision(ExitReason.TARGET, diff, pnl)
    if use_heikin_ashi:
        if position.type is TradeType.LONG and not snap.bullish_ha:
            return ExitDecision(ExitReason.SIGNAL, diff, pnl)
        if position.type is TradeType.SHORT and snap.bullish_ha:
            return ExitDecision(ExitReason.SIGNAL, diff, pnl)
    return None


def run_backtest(bars: Sequence[Bar], settings: Settings) -> SimulationResult:
    """Replay *bars* under *settings* and aggregate the result.

    Parameters
    ----------
    bars:
        Chronological bars, oldest first. Fewer than two bars give a
        degenerate all-zero result.
    settings:
        Frozen simulation settings.
    """
    costs = CostModel.from_settings(settings)
    mode = SignalMode.resolve(settings.use_obv, settings.use_heikin_ashi)
    entry_rule = mode.evaluate
    period = settings.obv_period

    capital = float(settings.initial_capital)
    equity: list[float] = [capital]
    trades: list[Trade] = []
    daily_pnl: dict[str, float] = defaultdict(float)
    daily_counts: dict[str, int] = defaultdict(int)
    position: Position | None = None
    bars_in_market = 0

    if not bars:
        return summarize(
            bars=bars, trades=trades, equity=[], initial_capital=capital,
            final_capital=capital, bars_in_market=0, daily_pnl={},
        )

    state = IndicatorState.seed(bars[0])
    for bar in bars[1:]:
        prev_state, state = state, state.advance(bar, period)
        snap = snapshot(prev_state, state, period)

        if position is not None:
            bars_in_market += 1
            decision = check_exit(position, snap, costs, settings.use_heikin_ashi)
            if decision is not None:
                net = costs.net_pnl(decision.pnl)
                capital += net
                trades.append(Trade(
                    type=position.type,
                    entry_price=position.entry_price,
                    exit_price=bar.close,
                    entry_time=position.entry_time,
                    exit_time=bar.time,
                    pnl=net,
                    exit_reason=decision.reason,
                ))
                day = bar.utc_date()
                daily_pnl[day] += net
                daily_counts[day] += 1
                position = None
        else:
            side = select_side(entry_rule(snap), costs.allow_long, costs.allow_short)
            if side is not None:
                position = Position(
                    type=side,
                    entry_price=costs.entry_price(side, bar.close),
                    entry_time=bar.time,
                )
                capital -= costs.fee_per_trade

        equity.append(capital)

    if position is not None:
        last = bars[-1]
        diff = price_diff(position, last.close)
        net = costs.net_pnl(
            costs.gross_pnl(diff, FORCED_CLOSE_CONTRACT_VALUE),
            FORCED_CLOSE_CONTRACT_VALUE,
        )
        capital += net
        trades.append(Trade(
            type=position.type,
            entry_price=position.entry_price,
            exit_price=last.close,
            entry_time=position.entry_time,
            exit_time=last.time,
            pnl=net,
            exit_reason=ExitReason.END,
        ))
        day = last.utc_date()
        daily_pnl[day] += net
        daily_counts[day] += 1

    return summarize(
        bars=bars,
        trades=trades,
        equity=equity,
        initial_capital=float(settings.initial_capital),
        final_capital=capital,
        bars_in_market=bars_in_market,
        daily_pnl=daily_pnl,
        daily_counts=daily_counts,
    )
