"""Categories subcommand: list, slugs."""

from __future__ import annotations

import typer

from predresolve.cli.context import get_service, remote_errors

app = typer.Typer(help="Market categories")


@app.command("list")
def list_categories(ctx: typer.Context) -> None:
    """Show category ids and active market counts."""
    service = get_service(ctx)
    with remote_errors():
        cats = service.resolver.categories()
    for c in cats:
        name = f"  {c.name}" if c.name else ""
        typer.echo(f"  {c.category_id:>6}  {c.count:>6}{name}")
    typer.echo(f"Total: {len(cats)} categories")


@app.command("slugs")
def slugs(
    ctx: typer.Context,
    category_id: str = typer.Argument(..., help="Category id"),
    filters: list[str] = typer.Option([], "--filter", "-f", help="Substring the slug or title must contain (repeatable)"),
    limit: int | None = typer.Option(None, "--limit", "-n"),
    sort_by: str | None = typer.Option(None, "--sort-by", help="Remote sort key, e.g. newest"),
) -> None:
    """Slugs of active markets in a category, optionally narrowed by substrings."""
    service = get_service(ctx)
    with remote_errors():
        found = service.resolver.category_slugs(category_id, filters=filters, limit=limit, sort_by=sort_by)
    for slug in found:
        typer.echo(slug)
    if not found:
        typer.echo("No market found.")
