"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from predresolve.config import get_settings
from predresolve.config.settings import configure_logging

app = typer.Typer(
    name="predres",
    help="predresolve - resolve market names to slugs, index active markets, fetch market details.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings") or get_settings(profile, config_dir)
    configure_logging(settings)
    obj.update({"settings": settings, "config_dir": config_dir, "profile": profile})


# Subcommands registered from other modules
from predresolve.cli import api_cmd, categories, index, markets  # noqa: E402

app.add_typer(markets.app, name="markets")
app.add_typer(categories.app, name="categories")
app.add_typer(index.app, name="index")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
