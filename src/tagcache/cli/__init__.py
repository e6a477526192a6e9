"""CLI commands for tagcache.

Provides command-line interface using Typer:
- tagcache status: Show backend health, tag support and policies
- tagcache clear: Clear caches per entity class, collection, URI or handle
- tagcache flush: Drop the whole cache namespace (requires --yes)

Usage:
    tagcache --help
    tagcache status
    tagcache clear entries
    tagcache clear collection blog
    tagcache flush --yes
"""

import typer

from tagcache.cli.clear_cmd import app as clear_app
from tagcache.cli.flush_cmd import app as flush_app
from tagcache.cli.status_cmd import app as status_app

# Main CLI application
app = typer.Typer(
    name="tagcache",
    help="tagcache: tagged cache-aside layer for CMS repositories",
    no_args_is_help=True,
)

app.add_typer(status_app, name="status")
app.add_typer(clear_app, name="clear")
app.add_typer(flush_app, name="flush")


@app.callback()
def callback() -> None:
    """tagcache: tagged cache-aside layer for CMS repositories."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
