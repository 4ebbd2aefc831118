"""
Commands for the posts.json backups kept in .microb/backups/.

Every index save leaves a copy of the previous version behind; these
commands list, prune and restore those copies.
"""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from microb.core.backup import BackupInfo, backups_to_prune, list_backups, restore_backup
from microb.core.config import SitePaths, get_paths
from microb.core.settings import get_config_value

console = Console()

AGE_UNITS = [(1 / 24, 24 * 60, "m"), (1, 24, "h"), (7, 1, "d"), (30, 1 / 7, "w")]


def _retention() -> tuple[int, int]:
    """Configured (keep_count, keep_days)."""
    return int(get_config_value("backup.keep_count")), int(get_config_value("backup.keep_days"))


def _index_backups(paths: SitePaths) -> list[BackupInfo]:
    return list_backups(paths.backups, paths.index.stem)


def _format_age(days: float) -> str:
    for limit, scale, unit in AGE_UNITS:
        if days < limit:
            return f"{int(days * scale)}{unit} ago"
    return f"{int(days / 30)}mo ago"


def _post_count(path) -> str:
    """Number of posts in an index file, or '?' when it cannot be read."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        return str(len(document.get("posts", [])))
    except (OSError, ValueError, AttributeError):
        return "?"


@click.group()
def backup():
    """List, prune and restore posts.json backups.

    A backup is written automatically before every index save.
    """
    pass


@backup.command(name="list")
@click.option("-n", "--limit", type=int, default=10, help="Show at most this many backups")
@click.option("--all", "show_all", is_flag=True, help="Show every backup")
def list_cmd(limit: int, show_all: bool):
    """List backups, newest first (# is the rollback index)."""
    backups = _index_backups(get_paths())
    if not backups:
        console.print("[dim]No backups found for posts.json[/dim]")
        return

    shown = backups if show_all else backups[:limit]

    table = Table(title=f"posts.json ({len(backups)} backups)", header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Taken", style="green")
    table.add_column("Age", style="yellow", justify="right")
    table.add_column("Posts", justify="right")
    table.add_column("Size", style="blue", justify="right")
    for i, info in enumerate(shown):
        table.add_row(
            str(i),
            info.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            _format_age(info.age_days),
            _post_count(info.path),
            info.size_human,
        )
    console.print(table)

    if len(shown) < len(backups):
        console.print(f"[dim]{len(backups) - len(shown)} older backups hidden; pass --all[/dim]")


@backup.command(name="status")
def status_cmd():
    """Summarise backups against the retention settings."""
    backups = _index_backups(get_paths())
    keep_count, keep_days = _retention()
    prunable = backups_to_prune(backups, keep_count, keep_days)

    table = Table(title="Backup Status", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Backups", str(len(backups)))
    table.add_row("Total size", f"{sum(b.size_bytes for b in backups) / 1024:.1f} KB")
    table.add_row("Newest", _format_age(backups[0].age_days) if backups else "-")
    table.add_row("Oldest", _format_age(backups[-1].age_days) if backups else "-")
    table.add_row("Prunable", f"[yellow]{len(prunable)}[/yellow]" if prunable else "[green]0[/green]")
    console.print(table)

    console.print(Panel(
        f"Retention Policy: keep the newest [cyan]{keep_count}[/cyan], "
        f"drop the rest after [cyan]{keep_days}[/cyan] days.\n"
        "[dim]Pruning runs on every save; change it with "
        "'microb config set backup.keep_days N'.[/dim]",
        title="Settings",
    ))


@backup.command(name="clean")
@click.option("--days", type=int, default=None, help="Age in days past which backups go (default: backup.keep_days)")
@click.option("--keep", type=int, default=None, help="Newest backups always kept (default: backup.keep_count)")
@click.option("--dry-run", "-n", is_flag=True, help="Only list what would be deleted")
@click.option("--force", "-f", is_flag=True, help="Do not ask for confirmation")
def clean_cmd(days: int | None, keep: int | None, dry_run: bool, force: bool):
    """Delete backups outside the retention policy.

    Examples:
        microb backup clean                # configured policy
        microb backup clean --days 7       # drop anything older than a week
        microb backup clean -n             # preview
    """
    keep_count, keep_days = _retention()
    to_delete = backups_to_prune(
        _index_backups(get_paths()),
        keep_count if keep is None else keep,
        keep_days if days is None else days,
    )

    if not to_delete:
        console.print("[green]Nothing to clean.[/green]")
        return

    for info in to_delete:
        console.print(f"  [red]-[/red] {info.path.name} [dim]({_format_age(info.age_days)})[/dim]")

    if dry_run:
        console.print(f"\n[yellow]DRY RUN - {len(to_delete)} backup(s) would be deleted[/yellow]")
        return

    if not force and not click.confirm(f"Delete {len(to_delete)} backup(s)?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    deleted = 0
    for info in to_delete:
        try:
            info.path.unlink(missing_ok=True)
        except OSError as e:
            console.print(f"[red]Could not delete {info.path.name}: {e}[/red]")
            continue
        deleted += 1

    console.print(f"[green]Deleted {deleted} backup(s)[/green]")


@backup.command(name="rollback")
@click.option("-i", "--index", type=int, default=0, help="Backup to restore, as numbered by 'backup list'")
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be restored")
@click.option("--force", "-f", is_flag=True, help="Do not ask for confirmation")
def rollback_cmd(index: int, dry_run: bool, force: bool):
    """Restore posts.json from a backup.

    The current index is backed up first and the read cache is cleared.
    Content files are left alone; run 'microb integrity check' afterwards.

    Examples:
        microb backup rollback          # newest backup
        microb backup rollback -i 1     # the one before that
    """
    from microb.core.errors import StoreError
    from microb.core.lock import IndexLock
    from microb.core.site import open_cache

    paths = get_paths()
    backups = _index_backups(paths)
    if not backups:
        console.print("[red]No backups found for posts.json[/red]")
        raise SystemExit(1)
    if not 0 <= index < len(backups):
        console.print(f"[red]No backup #{index}; valid range is 0-{len(backups) - 1}[/red]")
        raise SystemExit(1)

    info = backups[index]
    console.print(Panel(
        f"Restore [bold]{info.path.name}[/bold] "
        f"({_format_age(info.age_days)}, {_post_count(info.path)} posts)\n"
        f"over {paths.index.name} ({_post_count(paths.index)} posts)",
        title="Rollback",
    ))

    if dry_run:
        console.print("[yellow]DRY RUN - nothing restored[/yellow]")
        return

    if not force and not click.confirm("Restore this backup?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    try:
        with IndexLock(paths.lock_file):
            restore_backup(paths.index, paths.backups, index)
    except Exception as e:
        console.print(f"[red]Rollback failed: {e}[/red]")
        raise SystemExit(1) from e

    console.print(f"[green]Restored posts.json from {info.path.name}[/green]")
    try:
        open_cache(paths).invalidate()
    except StoreError as e:
        console.print(f"[yellow]{e}[/yellow]")
