"""CLI commands for clearing caches.

Usage:
    tagcache clear entries
    tagcache clear globals
    tagcache clear fieldsets
    tagcache clear entry 42
    tagcache clear collection blog
    tagcache clear uris
    tagcache clear global footer
    tagcache clear fieldset seo
"""

from __future__ import annotations

import typer

from tagcache.cli.common import load_provider

app = typer.Typer(help="Clear cached values", no_args_is_help=True)

VERBOSE = typer.Option(False, "--verbose", "-v", help="Show debug logging")


def _warn_untagged(tags_supported: bool) -> None:
    if not tags_supported:
        typer.echo(
            "Warning: backend has no tag support; only exactly known keys were removed, "
            "the rest expires by TTL.",
            err=True,
        )


def _report(ok: bool, what: str) -> None:
    if not ok:
        typer.echo(f"Error: could not clear {what}, cached values expire by TTL", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Cleared {what}")


@app.command("entries")
def clear_entries(verbose: bool = VERBOSE) -> None:
    """Clear every cached entry lookup, including URI lookups."""
    _, provider = load_provider(verbose)
    ok = provider.clear_all_entry_cache()
    _warn_untagged(provider.engine.tags_supported)
    _report(ok, "entry caches")


@app.command("globals")
def clear_globals(verbose: bool = VERBOSE) -> None:
    """Clear every cached global set."""
    _, provider = load_provider(verbose)
    ok = provider.clear_all_global_cache()
    _warn_untagged(provider.engine.tags_supported)
    _report(ok, "global caches")


@app.command("fieldsets")
def clear_fieldsets(verbose: bool = VERBOSE) -> None:
    """Clear every cached fieldset."""
    _, provider = load_provider(verbose)
    ok = provider.clear_all_fieldset_cache()
    _warn_untagged(provider.engine.tags_supported)
    _report(ok, "fieldset caches")


@app.command("entry")
def clear_entry(
    entry_id: str = typer.Argument(..., help="Entry id"),
    verbose: bool = VERBOSE,
) -> None:
    """Clear the cached lookups of one entry."""
    _, provider = load_provider(verbose)
    _report(provider.clear_entry_cache(entry_id), f"cache for entry {entry_id}")


@app.command("collection")
def clear_collection(
    name: str = typer.Argument(..., help="Collection handle"),
    verbose: bool = VERBOSE,
) -> None:
    """Clear the cached lookups of one collection and all URI lookups."""
    _, provider = load_provider(verbose)
    _report(provider.clear_collection_cache(name), f"cache for collection {name}")


@app.command("uris")
def clear_uris(verbose: bool = VERBOSE) -> None:
    """Clear all URI lookups, e.g. after route changes."""
    _, provider = load_provider(verbose)
    ok = provider.clear_uri_cache()
    _warn_untagged(provider.engine.tags_supported)
    _report(ok, "URI caches")


@app.command("global")
def clear_global(
    handle: str = typer.Argument(..., help="Global set handle"),
    verbose: bool = VERBOSE,
) -> None:
    """Clear the cached variables of one global set."""
    _, provider = load_provider(verbose)
    _report(provider.clear_global_cache(handle), f"cache for global set {handle}")


@app.command("fieldset")
def clear_fieldset(
    handle: str = typer.Argument(..., help="Fieldset handle"),
    verbose: bool = VERBOSE,
) -> None:
    """Clear the cached fieldset and the fieldset listing."""
    _, provider = load_provider(verbose)
    _report(provider.clear_fieldset_cache(handle), f"cache for fieldset {handle}")
