"""
botsim dashboard: journaled backtest runs with equity curve, daily P&L and trades.
Run from repo root: streamlit run dashboard/app.py
Or with a journal file: BOTSIM_DASHBOARD_JOURNAL=/path/to/journal.jsonl streamlit run dashboard/app.py
"""

import streamlit as st

from data_reader import (
    _journal_path,
    get_backtest_run,
    list_backtest_runs,
    read_journal_events,
)

st.set_page_config(page_title="botsim Dashboard", layout="wide")
st.title("Backtest Dashboard")

journal = _journal_path()
runs = list_backtest_runs(limit=100)

if not runs:
    st.warning(f"No backtest runs found in: `{journal}`")
    st.caption("Run `botsim backtest` to journal a run, then refresh.")
    st.stop()

if st.button("Refresh"):
    st.rerun()

labels = {
    f"{r['ts_utc']}  {r['asset']} {r['timeframe']}  gain {r['total_gain']:+,.2f}  ({r['run_id']})": r["run_id"]
    for r in runs
}
choice = st.selectbox("Run", list(labels))
run = get_backtest_run(labels[choice])
if run is None:
    st.error("Run not found in journal.")
    st.stop()

result = run.get("result") or {}

c1, c2, c3, c4 = st.columns(4)
with c1:
    st.metric("Total gain", f"${result.get('totalGain', 0.0):+,.2f}")
    st.caption(f"Final capital ${result.get('finalCapital', 0.0):,.2f}")
with c2:
    st.metric("Trades", result.get("totalTrades", 0))
    st.caption(
        f"W {result.get('winningTrades', 0)} / L {result.get('losingTrades', 0)} / N {result.get('neutralTrades', 0)}"
    )
with c3:
    st.metric("Win rate", f"{result.get('winRate', 0.0):.1f}%")
    st.caption(f"Gain/loss ratio {result.get('gainLossRatio', 0.0):.2f}")
with c4:
    st.metric("Max drawdown", f"${result.get('maxDrawdown', 0.0):,.2f}")
    st.caption(f"Max run-up ${result.get('maxRunup', 0.0):,.2f}")

st.subheader("Equity")
equity = result.get("equity") or []
if equity:
    st.line_chart(equity)
else:
    st.caption("No equity curve.")

st.subheader("Daily performance")
daily = result.get("dailyPerformance") or []
if daily:
    st.bar_chart({d["date"]: d["gain"] for d in daily})
else:
    st.caption("No closed trades.")

with st.expander("Trades", expanded=False):
    trades = result.get("trades") or []
    if not trades:
        st.caption("No trades.")
    else:
        st.dataframe(trades, use_container_width=True)

with st.expander("Settings", expanded=False):
    st.json(run.get("settings") or {})

with st.expander("Recent optimizations", expanded=False):
    opts = read_journal_events("optimization", limit=10)
    if not opts:
        st.caption("No optimizations yet.")
    else:
        for e in opts:
            ts = (e.get("ts_utc") or "")[:19]
            values = "  ".join(f"{k}={v}" for k, v in (e.get("best_values") or {}).items())
            st.text(f"{ts}  {e.get('asset')} {e.get('timeframe')}  {e.get('metric')}={e.get('best_score', 0.0):.4f}")
            st.caption(values)
