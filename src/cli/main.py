"""
CLI entry point: sessions ingest | list | stats | health.

Every command loads config from --config (default config.yaml), prints
human-readable session output, and logs to the journal where asked.
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import load_config

load_dotenv()

logger = logging.getLogger("sessions")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.option("--exchange", "exchange_override", default=None, help="Override the exchange from config (bitmex, binance, okx, bybit).")
@click.pass_context
def cli(ctx: click.Context, config_path: str, exchange_override: str | None) -> None:
    """position-sessions: rebuild position sessions from exchange executions."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["exchange"] = exchange_override.lower() if exchange_override else None


def _load(ctx: click.Context):
    """Load app config, resolve the exchange and build the event logger."""
    from cli.structured_log import StructuredEventLogger

    cfg = load_config(ctx.obj["config_path"])
    exchange = ctx.obj.get("exchange") or cfg.exchange
    events = StructuredEventLogger(
        exchange,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    return cfg, exchange, events


def _compute(cfg, exchange: str, events):
    """Load executions from the store and compute sessions for *exchange*."""
    from config import load_session_config
    from data import ExecutionStore, SessionCache
    from session_core import detect_mode

    session_cfg = load_session_config(cfg.session_config_path, exchange=exchange)
    cache = SessionCache(ExecutionStore(cfg.data.store_path), session_cfg)
    executions = cache.get_executions(exchange)
    sessions = cache.get_sessions(exchange)
    mode = detect_mode(executions, exchange, session_cfg) if executions else None
    open_count = sum(1 for s in sessions if not s.is_closed)
    events.sessions_computed(
        mode.value if mode else "none",
        executions=len(executions),
        sessions=len(sessions),
        open_sessions=open_count,
    )
    return executions, sessions, mode


# ---------- sessions ingest ----------


@cli.command()
@click.option("--file", "file_path", default=None, help="Executions CSV to import (default: data.executions_csv from config).")
@click.pass_context
def ingest(ctx: click.Context, file_path: str | None) -> None:
    """Import an executions CSV export into the local store."""
    from data import ExecutionStore, read_executions_csv

    cfg, exchange, events = _load(ctx)
    source = file_path or cfg.data.executions_csv
    try:
        executions = read_executions_csv(source)
    except (FileNotFoundError, ValueError) as exc:
        events.error("ingest failed", detail=str(exc))
        raise click.ClickException(str(exc))

    store = ExecutionStore(cfg.data.store_path)
    written = store.write_executions(exchange, executions)
    total = store.count_executions(exchange)
    events.ingest_complete(source, executions_read=len(executions), executions_stored=written)

    click.echo(f"Stored {written} {exchange} executions from {source} in {cfg.data.store_path}")
    if executions:
        first = min(e.timestamp for e in executions)
        last = max(e.timestamp for e in executions)
        click.echo(f"  Range: {first.isoformat()} -> {last.isoformat()}")
    click.echo(f"  Total {exchange} executions in store: {total}")


# ---------- sessions list ----------


@cli.command(name="list")
@click.option("--symbol", default=None, help="Only sessions for this symbol (raw or display form).")
@click.option("--status", "status_filter", type=click.Choice(["all", "open", "closed"]), default="all", show_default=True)
@click.option("--limit", default=20, show_default=True, help="Maximum sessions to show (0 = all).")
@click.option("--detail", is_flag=True, default=False, help="Show each session's fills.")
@click.option("--journal", "write_journal", is_flag=True, default=False, help="Append the listed sessions to the journal.")
@click.pass_context
def list_sessions(
    ctx: click.Context,
    symbol: str | None,
    status_filter: str,
    limit: int,
    detail: bool,
    write_journal: bool,
) -> None:
    """List position sessions, newest first."""
    from cli.output import format_session_detail, format_session_list
    from config import SessionConfigError
    from session_core import ExecutionOrderError

    cfg, exchange, events = _load(ctx)
    try:
        executions, sessions, mode = _compute(cfg, exchange, events)
    except (SessionConfigError, ExecutionOrderError) as exc:
        events.error("session calculation failed", detail=str(exc))
        raise click.ClickException(str(exc))

    if not executions:
        click.echo(f"No {exchange} executions in store. Run 'sessions ingest' first.")
        return

    if symbol:
        sessions = [s for s in sessions if symbol in (s.symbol, s.display_symbol)]
    if status_filter != "all":
        sessions = [s for s in sessions if s.status.value == status_filter]
    if limit > 0:
        sessions = sessions[:limit]

    if detail:
        for s in sessions:
            click.echo(format_session_detail(s))
    else:
        click.echo(format_session_list(sessions))

    if write_journal:
        from journal import JournalWriter

        journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
        journal.run(exchange, mode.value, len(executions), len(sessions))
        for s in sessions:
            journal.session(s, exchange=exchange)
        click.echo(f"\nJournaled {len(sessions)} sessions to {cfg.journal.path}")


# ---------- sessions stats ----------


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show aggregate statistics over all sessions."""
    from cli.output import format_stats
    from config import SessionConfigError
    from session_core import ExecutionOrderError, summarize_sessions

    cfg, exchange, events = _load(ctx)
    try:
        executions, sessions, _ = _compute(cfg, exchange, events)
    except (SessionConfigError, ExecutionOrderError) as exc:
        events.error("session calculation failed", detail=str(exc))
        raise click.ClickException(str(exc))

    if not executions:
        click.echo(f"No {exchange} executions in store. Run 'sessions ingest' first.")
        return
    click.echo(format_stats(summarize_sessions(sessions), exchange))


# ---------- sessions health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, session config, DB access, executions.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        exchange = ctx.obj.get("exchange") or cfg.exchange
        checks.append(("config", True, f"loaded (exchange={exchange})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from config import load_session_config
        load_session_config(cfg.session_config_path, exchange=exchange)
        checks.append(("session_config", True, f"validated (exchange={exchange})"))
    except Exception as e:
        checks.append(("session_config", False, str(e)))

    try:
        from data import ExecutionStore
        store = ExecutionStore(cfg.data.store_path)
        count = store.count_executions(exchange)
        if count > 0:
            checks.append(("executions", True, f"{count} {exchange} executions"))
        else:
            checks.append(("executions", False, f"no executions for {exchange}"))
    except Exception as e:
        checks.append(("executions", False, str(e)))

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
