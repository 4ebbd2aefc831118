"""
Read cache CLI commands.
"""

from __future__ import annotations

import json as json_module

import click
from rich.console import Console
from rich.table import Table

from microb.admin.session import open_dashboard, password_option

console = Console()

STATE_STYLES = {
    "fresh": "green",
    "stale": "yellow",
    "absent": "dim",
}


def _format_seconds(seconds: float) -> str:
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds / 60)}m"
    return f"{seconds / 3600:.1f}h"


@click.group()
def cache():
    """Inspect and clear the read cache.

    The cache is a snapshot of posts.json in cache/posts.cache, rebuilt
    when it is older than cache.ttl_seconds or after any change.
    """
    pass


@cache.command(name="status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status_cmd(as_json: bool):
    """Show cache state, age and TTL."""
    from microb.core.site import open_cache

    read_cache = open_cache()
    state = read_cache.state()
    age = read_cache.age()

    if as_json:
        click.echo(json_module.dumps({
            "state": state.value,
            "age_seconds": age,
            "ttl_seconds": read_cache.ttl,
            "path": str(read_cache.cache_path),
        }, indent=2))
        return

    style = STATE_STYLES[state.value]
    table = Table(title="Read Cache", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("State", f"[{style}]{state.value}[/{style}]")
    table.add_row("Age", _format_seconds(age) if age is not None else "-")
    table.add_row("TTL", _format_seconds(read_cache.ttl))
    table.add_row("File", str(read_cache.cache_path))
    console.print(table)


@cache.command(name="clear")
@password_option
def clear_cmd(password: str):
    """Delete the cache snapshot; the next read rebuilds it."""
    result = open_dashboard(password).clear_cache()
    if result.ok:
        console.print(f"[green]{result.message}[/green]")
    else:
        console.print(f"[red]{result.message}[/red]")
        raise SystemExit(1)
