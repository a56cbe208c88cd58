"""Index subcommand: sync, list, watch."""

from __future__ import annotations

import signal

import typer

from predresolve.cli.context import get_service, parse_time_option, remote_errors

app = typer.Typer(help="Local index of active markets")


@app.command("sync")
def sync(ctx: typer.Context) -> None:
    """Fetch the bulk slug listing and store it locally."""
    service = get_service(ctx)
    with remote_errors():
        count = service.sync_index()
    typer.echo(f"Indexed {count} active markets.")


@app.command("list")
def list_index(
    ctx: typer.Context,
    ticker: str | None = typer.Option(None, "--ticker", help="Exact ticker, e.g. BTC"),
    contains: str | None = typer.Option(None, "--contains", "-c", help="Substring of the slug"),
    after: str | None = typer.Option(None, "--after", help="Deadline on/after (ISO-8601 or epoch)"),
    before: str | None = typer.Option(None, "--before", help="Deadline on/before (ISO-8601 or epoch)"),
    live_only: bool = typer.Option(False, "--live", help="Skip entries whose deadline has passed"),
) -> None:
    """Filter the stored index. Run 'predres index sync' first."""
    service = get_service(ctx)
    deadline_after = parse_time_option(after, "--after")
    deadline_before = parse_time_option(before, "--before")
    if not service.cache.is_loaded:
        service.load_index()
    if not service.cache.is_loaded:
        typer.echo("Index is empty. Run: predres index sync")
        raise typer.Exit(1)
    predicate = (lambda s: not s.is_expired()) if live_only else None
    rows = service.cache.filter(
        ticker=ticker,
        slug_contains=contains,
        deadline_after=deadline_after,
        deadline_before=deadline_before,
        predicate=predicate,
    )
    for s in rows:
        deadline = s.deadline.isoformat() if s.deadline else "-"
        strike = f"{s.strike_price:g}" if s.strike_price is not None else "-"
        typer.echo(f"  {s.ticker or '-':<6}  {strike:>12}  {deadline}  {s.slug}")
    age = service.cache.age()
    typer.echo(f"Total: {len(rows)} of {len(service.cache)} markets (index age {age:.0f}s)")


@app.command("watch")
def watch(
    ctx: typer.Context,
    interval: int | None = typer.Option(None, "--interval", "-i", min=1, help="Seconds between syncs (default from config)"),
) -> None:
    """Re-sync the index on a fixed cadence until interrupted."""
    service = get_service(ctx)
    if interval is not None:
        service.refresh_interval_sec = interval
    stopping = False

    def shutdown(signum, frame) -> None:
        nonlocal stopping
        stopping = True

    signal.signal(signal.SIGTERM, shutdown)
    typer.echo(f"Syncing every {service.refresh_interval_sec}s (Ctrl+C to stop)...")
    try:
        with remote_errors():
            service.watch_index(lambda: stopping, on_sync=lambda n: typer.echo(f"Indexed {n} active markets."))
    except KeyboardInterrupt:
        pass
    typer.echo("Stopped.")
