"""CLI command for flushing the whole cache namespace.

Usage:
    tagcache flush --yes
"""

from __future__ import annotations

import typer

from tagcache.cli.common import load_provider

app = typer.Typer(help="Flush every cached value")


@app.callback(invoke_without_command=True)
def flush(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Confirm the flush",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Flush the entire cache namespace.

    Removes entries, globals and fieldsets alike. Never run automatically.
    """
    if not yes:
        typer.echo("Error: flushing drops every cached value, pass --yes to confirm", err=True)
        raise typer.Exit(code=1)

    settings, provider = load_provider(verbose)
    if not provider.flush_everything():
        typer.echo(f"Error: flush of {settings.cache_prefix}:* failed", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Flushed {settings.cache_prefix}:*")
