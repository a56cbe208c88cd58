"""Shared CLI helpers - service from context, remote error -> exit code."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

import typer

from predresolve.errors import MarketNotFoundError, RemoteApiError
from predresolve.models import parse_timestamp
from predresolve.service import MarketService


def get_service(ctx: typer.Context) -> MarketService:
    """Service stored on the root context; built from settings on first use and closed with the context."""
    obj = ctx.find_root().obj
    service = obj.get("service")
    if service is None:
        service = MarketService.from_settings(obj["settings"])
        obj["service"] = service
        ctx.find_root().call_on_close(service.close)
    return service


@contextmanager
def remote_errors() -> Iterator[None]:
    """Print structured remote errors and exit: 1 for not-found and caller errors, 2 for retryable."""
    try:
        yield
    except MarketNotFoundError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    except RemoteApiError as e:
        typer.echo(f"Error: {e}", err=True)
        if e.retryable:
            typer.echo("The remote API is unavailable; retry later.", err=True)
        raise typer.Exit(2 if e.retryable else 1)


def parse_time_option(value: str | None, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=name)
