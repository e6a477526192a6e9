"""CLI command for inspecting the cache setup.

Usage:
    tagcache status
    tagcache status --format json
"""

from __future__ import annotations

import typer

from tagcache.cache.policy import EntityClass
from tagcache.cli.common import load_provider

app = typer.Typer(help="Show cache backend status and policies")


@app.callback(invoke_without_command=True)
def status(
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json",
    ),
) -> None:
    """Show backend health, tag support and effective policy per entity class."""
    import json

    from rich.console import Console
    from rich.table import Table

    settings, provider = load_provider()
    engine = provider.engine
    resolver = engine.resolver

    healthy = engine.backend.health_check()
    policies = {}
    for entity in EntityClass:
        policy = resolver.policy(entity)
        policies[entity.value] = {
            "enabled": policy.enabled,
            "ttl": resolver.ttl(entity),
            "exclusions": sorted(policy.exclusions),
            "tags_required": policy.tags_required,
        }

    if output_format == "json":
        typer.echo(
            json.dumps(
                {
                    "backend": engine.backend.name,
                    "prefix": settings.cache_prefix,
                    "healthy": healthy,
                    "tags_supported": engine.tags_supported,
                    "policies": policies,
                },
                indent=2,
            )
        )
        if not healthy:
            raise typer.Exit(code=1)
        return

    console = Console()
    health = "[green]ok[/green]" if healthy else "[red]unreachable[/red]"
    console.print(f"Backend: {engine.backend.name} ({settings.cache_prefix}:*) {health}")
    console.print(f"Tag support: {'yes' if engine.tags_supported else 'no'}")

    table = Table(title="Cache policies")
    table.add_column("Entity")
    table.add_column("Enabled")
    table.add_column("TTL (s)", justify="right")
    table.add_column("Excluded")
    table.add_column("Tags required")
    for name, policy in policies.items():
        table.add_row(
            name,
            "yes" if policy["enabled"] else "no",
            str(policy["ttl"]),
            ", ".join(policy["exclusions"]) or "-",
            "yes" if policy["tags_required"] else "no",
        )
    console.print(table)

    if not healthy:
        raise typer.Exit(code=1)
