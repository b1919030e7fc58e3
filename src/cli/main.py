"""
CLI entry point: botsim ingest | backtest | optimize | health.

Every command loads config from --config (default config.yaml), prints a
human-readable summary, and logs to the journal.
"""

import json
import logging
import sys
import uuid

import click
from dotenv import load_dotenv

from config import load_config

load_dotenv()

logger = logging.getLogger("botsim")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _parse_overrides(pairs: tuple[str, ...]) -> dict:
    """key=value pairs -> camelCase overrides. Values are read as JSON when possible."""
    out: dict = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint="--set")
        try:
            out[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            out[key.strip()] = raw
    return out


def _load_run_inputs(cfg, asset: str | None, timeframe: str | None, settings_path: str | None, pairs: tuple[str, ...]):
    """Resolve (settings, market data, events) for a backtest/optimize command."""
    from cli.structured_log import StructuredEventLogger
    from config import load_settings
    from data import build_service

    asset = (asset or cfg.asset).lower()
    tf = timeframe or cfg.timeframe
    events = StructuredEventLogger(
        asset,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    overrides = {"asset": asset, "timeframe": tf, **_parse_overrides(pairs)}
    settings = load_settings(config_path=settings_path or cfg.settings.path or None, overrides=overrides)
    service = build_service(cfg, on_fallback=lambda a, t, reason: events.data_fallback(t, reason))
    market = service.get_bars(settings.asset, settings.timeframe)
    return settings, market, events


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """botsim: Heikin-Ashi / OBV strategy backtester over OHLC bars."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- botsim ingest ----------


@cli.command()
@click.option("--asset", default=None, help="Asset key (e.g. silver, gold). Defaults to config value.")
@click.option("--timeframe", "tf_override", default=None, help="Override timeframe (e.g. 1h, 15m). Defaults to config value.")
@click.option("--refresh", is_flag=True, default=False, help="Ignore the cache TTL and fetch again.")
@click.pass_context
def ingest(ctx: click.Context, asset: str | None, tf_override: str | None, refresh: bool) -> None:
    """Fetch bars from the configured source and store locally."""
    cfg = load_config(ctx.obj["config_path"])
    from data import build_service
    from data.bar_store import BarStore

    asset = (asset or cfg.asset).lower()
    tf = tf_override or cfg.timeframe
    click.echo(f"Fetching {asset} {tf} bars (source: {cfg.data.source}) ...")
    market = build_service(cfg).get_bars(asset, tf, refresh=refresh)
    if not market.bars:
        click.echo("No bars returned. Check asset, timeframe, and API keys.")
        return
    if market.is_fallback:
        click.echo(f"  Provider unavailable ({market.fallback_reason}); synthetic bars were generated and not stored.")
    else:
        click.echo(f"Got {len(market.bars)} bars from {market.source}")
    click.echo(f"  Range: {market.bars[0].timestamp.isoformat()} -> {market.bars[-1].timestamp.isoformat()}")
    total = BarStore(cfg.data.bar_store_path).count_bars(asset, tf)
    click.echo(f"  Total {tf} bars in store: {total}")


# ---------- botsim backtest ----------


@cli.command()
@click.option("--asset", default=None, help="Asset key. Defaults to config value.")
@click.option("--timeframe", default=None, help="Bar timeframe. Defaults to config value.")
@click.option("--settings", "settings_path", default=None, help="Settings JSON (default: config settings.path, else packaged defaults).")
@click.option("--set", "pairs", multiple=True, help="Override one setting, e.g. --set stopLoss=500 (repeatable).")
@click.option("--trades", "show_trades", is_flag=True, default=False, help="List every closed trade.")
@click.option("--json-out", default=None, type=click.Path(dir_okay=False), help="Write the full JSON result to this file.")
@click.pass_context
def backtest(
    ctx: click.Context,
    asset: str | None,
    timeframe: str | None,
    settings_path: str | None,
    pairs: tuple[str, ...],
    show_trades: bool,
    json_out: str | None,
) -> None:
    """Run a backtest on cached or fetched bars and summarize the result."""
    cfg = load_config(ctx.obj["config_path"])
    from backtest import run_simulation
    from cli.output import format_backtest_summary
    from journal import JournalWriter
    from sim_core.validation import ValidationError

    try:
        settings, market, events = _load_run_inputs(cfg, asset, timeframe, settings_path, pairs)
    except ValidationError as e:
        _fail_validation(cfg, asset, str(e))

    run_id = uuid.uuid4().hex[:12]
    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    events.run_start(run_id, settings.timeframe, len(market.bars), market.source)

    def on_event(event_type: str, payload: dict) -> None:
        if event_type == "trade":
            t = payload["trade"]
            journal.trade(run_id, settings.asset, t)
            events.trade_closed(run_id, t.type.value, t.pnl, t.exit_reason.value)
        elif event_type == "complete":
            r = payload["result"]
            events.run_complete(run_id, r.total_trades, r.total_gain, payload["elapsed_ms"])

    click.echo(f"Running backtest: {settings.asset} {settings.timeframe}, {len(market.bars)} bars ({market.source}) ...")
    try:
        result = run_simulation(market.bars, settings, journal_callback=on_event)
    except ValidationError as e:
        events.validation_failed(str(e))
        click.echo(f"Invalid input: {e}", err=True)
        raise SystemExit(1)

    journal.backtest(run_id, settings.asset, settings.timeframe, market.source, settings.to_dict(), result.to_dict())
    click.echo(format_backtest_summary(result, market.bars, settings.asset, settings.timeframe, show_trades=show_trades))
    if json_out:
        with open(json_out, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        click.echo(f"Result written to {json_out}")


def _fail_validation(cfg, asset: str | None, message: str) -> None:
    from cli.structured_log import StructuredEventLogger

    StructuredEventLogger(
        (asset or cfg.asset).lower(),
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    ).validation_failed(message)
    click.echo(f"Invalid settings: {message}", err=True)
    raise SystemExit(1)


# ---------- botsim optimize ----------


@cli.command()
@click.option("--asset", default=None, help="Asset key. Defaults to config value.")
@click.option("--timeframe", default=None, help="Bar timeframe. Defaults to config value.")
@click.option("--settings", "settings_path", default=None, help="Settings JSON to start from.")
@click.option("--set", "pairs", multiple=True, help="Override one setting before optimizing (repeatable).")
@click.option("--iterations", default=20, show_default=True, help="Number of random candidates.")
@click.option(
    "--metric",
    default="totalGain",
    show_default=True,
    type=click.Choice(["totalGain", "winRate", "gainLossRatio", "sharpe"]),
    help="Result metric to maximize.",
)
@click.option("--param", "params", multiple=True, help="Parameter to tune (repeatable). Default: stopLoss, takeProfit, obvPeriod, positionSize.")
@click.option("--seed", default=None, type=int, help="Random seed for a reproducible search.")
@click.option("--top", default=5, show_default=True, help="Number of candidates to show.")
@click.pass_context
def optimize(
    ctx: click.Context,
    asset: str | None,
    timeframe: str | None,
    settings_path: str | None,
    pairs: tuple[str, ...],
    iterations: int,
    metric: str,
    params: tuple[str, ...],
    seed: int | None,
    top: int,
) -> None:
    """Random-search settings that maximize a result metric."""
    cfg = load_config(ctx.obj["config_path"])
    from backtest.optimizer import DEFAULT_PARAMETERS
    from backtest.optimizer import optimize as run_optimizer
    from cli.output import format_optimization
    from journal import JournalWriter
    from sim_core.validation import ValidationError

    try:
        settings, market, events = _load_run_inputs(cfg, asset, timeframe, settings_path, pairs)
        click.echo(f"Optimizing {settings.asset} {settings.timeframe}, {len(market.bars)} bars ({market.source}) ...")
        opt = run_optimizer(
            market.bars,
            settings,
            iterations=iterations,
            metric=metric,
            seed=seed,
            parameters=params or DEFAULT_PARAMETERS,
        )
    except ValidationError as e:
        _fail_validation(cfg, asset, str(e))

    best = opt.best
    events.optimization_complete(metric, iterations, best.score)
    JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout).optimization(
        settings.asset, settings.timeframe, metric, iterations, best.values, best.score,
        best_result=best.result.to_dict(),
    )
    click.echo(format_optimization(opt, top=top))


# ---------- botsim health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, simulation settings, bar store.

    Exit code 0 = healthy, 1 = unhealthy. Designed for Docker HEALTHCHECK.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded ({cfg.asset} {cfg.timeframe}, source={cfg.data.source})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from config import load_settings
        settings = load_settings(config_path=cfg.settings.path or None, overrides={"asset": cfg.asset})
        checks.append(("settings", True, f"validated (asset={settings.asset})"))
    except Exception as e:
        checks.append(("settings", False, str(e)))

    try:
        from data.bar_store import BarStore
        store = BarStore(cfg.data.bar_store_path)
        bar_count = store.count_bars(cfg.asset, cfg.timeframe)
        fresh = store.is_fresh(cfg.asset, cfg.timeframe)
        checks.append(("bars", True, f"{bar_count} {cfg.timeframe} bars cached ({'fresh' if fresh else 'stale'})"))
    except Exception as e:
        checks.append(("bars", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
