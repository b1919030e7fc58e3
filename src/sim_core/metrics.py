"""
Result aggregation: trade ledger + equity curve -> SimulationResult.

Sign conventions: max drawdown is reported as a negative cash amount,
max run-up as a positive one. Pure functions; no I/O.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from sim_core.contracts import Bar, DailyPerformance, SimulationResult, Trade


def drawdown_and_runup(equity: Sequence[float]) -> tuple[float, float]:
    """Largest peak-to-point drop and trough-to-point rise of *equity*.

    Both are returned as non-negative magnitudes.
    """
    if not equity:
        return 0.0, 0.0
    peak = trough = equity[0]
    max_dd = max_ru = 0.0
    for value in equity:
        if value > peak:
            peak = value
        if value < trough:
            trough = value
        max_dd = max(max_dd, peak - value)
        max_ru = max(max_ru, value - trough)
    return max_dd, max_ru


def gain_loss_ratio(trades: Sequence[Trade]) -> float:
    """Average win over average loss; the average loss is 1 when there are no losers."""
    wins = [t.pnl for t in trades if t.pnl > 0]
    losses = [t.pnl for t in trades if t.pnl < 0]
    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = abs(sum(losses)) / len(losses) if losses else 1.0
    return avg_win / avg_loss


def daily_performance(
    daily_pnl: Mapping[str, float],
    daily_counts: Mapping[str, int] | None = None,
) -> list[DailyPerformance]:
    """One entry per day with closed trades, ascending by date string."""
    counts = daily_counts or {}
    return [
        DailyPerformance(date=day, gain=daily_pnl[day], trades=counts.get(day, 0))
        for day in sorted(daily_pnl)
    ]


def summarize(
    *,
    bars: Sequence[Bar],
    trades: Sequence[Trade],
    equity: Sequence[float],
    initial_capital: float,
    final_capital: float,
    bars_in_market: int,
    daily_pnl: Mapping[str, float],
    daily_counts: Mapping[str, int] | None = None,
) -> SimulationResult:
    """Build the SimulationResult for a finished replay."""
    total = len(trades)
    winning = sum(1 for t in trades if t.pnl > 0)
    losing = sum(1 for t in trades if t.pnl < 0)
    neutral = total - winning - losing
    pnls = [t.pnl for t in trades]

    total_gain = final_capital - initial_capital
    max_dd, max_ru = drawdown_and_runup(equity)
    trading_days = len({bar.utc_date() for bar in bars}) or 1

    return SimulationResult(
        initial_capital=initial_capital,
        final_capital=final_capital,
        total_gain=total_gain,
        total_trades=total,
        winning_trades=winning,
        losing_trades=losing,
        neutral_trades=neutral,
        win_rate=winning / total * 100 if total else 0.0,
        gains_only=sum((p for p in pnls if p > 0), 0.0),
        losses_only=sum((p for p in pnls if p < 0), 0.0),
        gain_loss_ratio=gain_loss_ratio(trades),
        avg_gain_per_trade=total_gain / total if total else 0.0,
        best_trade=max(pnls) if pnls else 0.0,
        worst_trade=min(pnls) if pnls else 0.0,
        max_drawdown=-max_dd if max_dd else 0.0,
        max_runup=max_ru,
        time_in_market=bars_in_market / len(bars) * 100 if bars else 0.0,
        avg_orders_per_day=total / trading_days,
        daily_performance=daily_performance(daily_pnl, daily_counts),
        equity=list(equity),
        trades=list(trades),
    )
