"""
Human-readable output for the terminal.

Every CLI command uses these formatters. Journal receives the same data.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from backtest.optimizer import OptimizationResult
    from sim_core.contracts import Bar, SimulationResult


def _fmt_time(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def format_backtest_summary(
    result: SimulationResult,
    bars: Sequence[Bar],
    asset: str,
    timeframe: str,
    *,
    show_trades: bool = False,
) -> str:
    """Format backtest result summary."""
    period = f"{_fmt_time(bars[0].time)} -> {_fmt_time(bars[-1].time)}" if bars else "-"
    lines = [
        f"=== Backtest: {asset} {timeframe} ===",
        f"Period       : {period} ({len(bars)} bars)",
        f"Initial cap. : ${result.initial_capital:,.2f}",
        f"Final cap.   : ${result.final_capital:,.2f}",
        f"Total gain   : ${result.total_gain:+,.2f}",
        f"Trades       : {result.total_trades} (W:{result.winning_trades} / L:{result.losing_trades} / N:{result.neutral_trades})",
        f"Win rate     : {result.win_rate:.1f}%",
        f"Gain/loss    : {result.gain_loss_ratio:.2f}  (gains ${result.gains_only:,.2f} / losses ${result.losses_only:,.2f})",
        f"Best / worst : ${result.best_trade:+,.2f} / ${result.worst_trade:+,.2f}",
        f"Drawdown     : ${result.max_drawdown:,.2f}  |  Run-up: ${result.max_runup:,.2f}",
        f"In market    : {result.time_in_market:.1f}% of bars  |  {result.avg_orders_per_day:.2f} orders/day",
    ]
    if show_trades and result.trades:
        lines.append("")
        for i, t in enumerate(result.trades, 1):
            lines.append(f"  Trade #{i}: {t.type.value.upper()} | entry {t.entry_price:.4f} @ {_fmt_time(t.entry_time)}")
            lines.append(f"            exit  {t.exit_price:.4f} @ {_fmt_time(t.exit_time)} | PnL ${t.pnl:+.2f} ({t.exit_reason.value})")
    lines.append("===")
    return "\n".join(lines)


def format_optimization(opt: OptimizationResult, top: int = 5) -> str:
    """Ranges searched and the best candidates, best first."""
    lines = [f"=== Optimization: {opt.iterations} iterations, metric {opt.metric} ==="]
    for r in opt.ranges:
        lines.append(f"  {r.name:13s}: current {r.current:g}  range [{r.min:g}, {r.max:g}] step {r.step:g}")
    lines.append("")
    for rank, cand in enumerate(opt.candidates[:top], 1):
        values = "  ".join(f"{k}={v:g}" for k, v in cand.values.items())
        lines.append(
            f"  #{rank}: score {cand.score:.4f} | gain ${cand.result.total_gain:+,.2f}"
            f"  trades {cand.result.total_trades}  win {cand.result.win_rate:.1f}%"
        )
        lines.append(f"       {values}")
    lines.append("===")
    return "\n".join(lines)
