"""
Media CLI commands: import and list images.
"""

from __future__ import annotations

import json as json_module
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from microb.admin.session import open_dashboard, password_option

console = Console()


def _size_human(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


@click.group()
def media():
    """Manage images in the site's images/ directory."""
    pass


@media.command(name="add")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@password_option
def add_cmd(file: Path, password: str):
    """Import an image file.

    Accepts JPG, JPEG, PNG, GIF and WEBP files up to 5MB. The stored name
    is sanitised and suffixed with _1, _2, ... if it is already taken.
    """
    result = open_dashboard(password).import_image(file)
    if not result.ok:
        console.print(f"[red]{result.message}[/red]")
        raise SystemExit(1)

    console.print(f"[green]{result.message}[/green]")
    console.print(f"  [dim]url:[/dim] [cyan]/images/{result.path.name}[/cyan]")


@media.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON array")
def list_cmd(as_json: bool):
    """List imported images, newest first."""
    from microb.core.config import get_paths
    from microb.media.library import list_images

    images = list_images(get_paths().images)

    if as_json:
        click.echo(json_module.dumps([
            {
                "name": img.name,
                "url": img.url,
                "size_bytes": img.size_bytes,
                "modified": img.modified.isoformat(timespec="seconds"),
            }
            for img in images
        ], indent=2))
        return

    if not images:
        console.print("[yellow]No images found.[/yellow]")
        return

    table = Table(title=f"Images ({len(images)})")
    table.add_column("Name", style="green")
    table.add_column("Size", style="blue", justify="right")
    table.add_column("Modified", style="cyan")
    table.add_column("URL", style="dim")
    for img in images:
        table.add_row(
            img.name,
            _size_human(img.size_bytes),
            img.modified.strftime("%Y-%m-%d %H:%M"),
            img.url,
        )
    console.print(table)
