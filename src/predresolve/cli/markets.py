"""Markets subcommand: search, resolve, show."""

from __future__ import annotations

import typer

from predresolve.cli.context import get_service, remote_errors

app = typer.Typer(help="Search, resolve and fetch markets")


@app.command("search")
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Free-text market name, e.g. '1hr BTC'"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Max results (default from config)"),
    threshold: float | None = typer.Option(None, "--threshold", "-t", min=0.0, max=1.0, help="Minimum similarity"),
) -> None:
    """Remote search, ranked by descending score."""
    service = get_service(ctx)
    with remote_errors():
        results = service.resolver.search(query, limit=limit, similarity_threshold=threshold)
    if not results:
        typer.echo("No market found.")
        return
    for r in results:
        typer.echo(f"  {r.score:.3f}  {r.slug}  {r.title[:60]}")
    typer.echo(f"Total: {len(results)} results")


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Free-text market name"),
    threshold: float | None = typer.Option(None, "--threshold", "-t", min=0.0, max=1.0),
    all_candidates: bool = typer.Option(False, "--all", help="Print every candidate, not just the best slug"),
) -> None:
    """Resolve a name to a slug: search first, then filter the bulk listing."""
    service = get_service(ctx)
    with remote_errors():
        if not service.cache.is_loaded:
            service.load_index()
        results = service.resolver.resolve(query, similarity_threshold=threshold)
    if not results:
        typer.echo("No market found.")
        return
    if all_candidates:
        for r in results:
            typer.echo(f"{r.slug}\t{r.score:.3f}")
    else:
        typer.echo(results[0].slug)


@app.command("show")
def show(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Market slug"),
    as_json: bool = typer.Option(False, "--json", help="Print the full record as JSON"),
) -> None:
    """Fetch full market details. Exit 1 if not found, 2 if the API is unavailable."""
    service = get_service(ctx)
    with remote_errors():
        market = service.fetcher.fetch(slug)
    if as_json:
        typer.echo(market.model_dump_json(indent=2))
        return
    typer.echo(f"Slug:      {market.slug}")
    typer.echo(f"Title:     {market.title}")
    typer.echo(f"Status:    {market.status or '-'}")
    typer.echo(f"Ticker:    {market.ticker or '-'}")
    if market.strike_price is not None:
        typer.echo(f"Strike:    {market.strike_price}")
    typer.echo(f"Deadline:  {market.deadline.isoformat() if market.deadline else '-'}")
    typer.echo(f"Volume:    {market.volume:.2f}")
    typer.echo(f"Liquidity: {market.liquidity:.2f}")
    typer.echo(f"YES token: {market.yes_position_id or '-'}")
    typer.echo(f"NO token:  {market.no_position_id or '-'}")
