"""
Main CLI dispatcher for microb.

Usage:
    microb init                          # Initialize a site in the current directory
    microb posts [list|show|new|edit|delete|move|shuffle|stats]
    microb cache [status|clear]
    microb media [add|list]
"""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from microb import __version__

console = Console()


class Context:
    """Shared context for all commands."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.console = console


pass_context = click.make_pass_decorator(Context, ensure=True)


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich; DEBUG with -v, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="microb")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """MicroB flat-file blog tools.

    Manage the posts, index backups, read cache and images of a flat-file blog.
    """
    ctx.obj = Context(verbose=verbose)
    configure_logging(verbose)


@main.command()
@click.option("--force", "-f", is_flag=True, help="Reinitialize an existing site")
def init(force: bool) -> None:
    """Initialize a microb site.

    Creates .microb/, posts/, cache/, images/ and an empty posts.json.
    """
    from microb.core.backup import safe_write_json
    from microb.core.config import MARKER_DIR, get_paths

    site_root = Path.cwd()
    marker = site_root / MARKER_DIR

    if marker.exists() and not force:
        console.print(f"[yellow]{MARKER_DIR}/ directory already exists at {marker}[/yellow]")
        console.print("[dim]Use --force to reinitialize.[/dim]")
        return

    console.print(f"[cyan]Initializing microb site at {site_root}[/cyan]")

    paths = get_paths(site_root)
    for dir_path in (paths.microb_dir, paths.backups, paths.posts, paths.cache_dir, paths.images):
        dir_path.mkdir(parents=True, exist_ok=True)
        console.print(f"  [green]Created[/green] {dir_path.relative_to(site_root)}")

    # Never clobber an existing index, even with --force
    if not paths.index.exists():
        safe_write_json(paths.index, {"posts": []}, create_backup_first=False)
        console.print(f"  [green]Created[/green] {paths.index.name}")

    gitignore_path = site_root / ".gitignore"
    gitignore_entry = "cache/"
    content = gitignore_path.read_text() if gitignore_path.exists() else ""
    if gitignore_entry not in content.splitlines():
        with open(gitignore_path, "a") as f:
            f.write(f"\n# microb read cache\n{gitignore_entry}\n")
        console.print(f"  [green]Updated[/green] .gitignore with {gitignore_entry}")

    console.print()
    console.print("[green]Done![/green] Set an admin password with 'microb config passwd'.")


# Import and register command groups (imports after main definition intentional)
from microb.backup.commands import backup  # noqa: E402
from microb.cache.commands import cache  # noqa: E402
from microb.config.commands import config  # noqa: E402
from microb.core.integrity_commands import integrity  # noqa: E402
from microb.media.commands import media  # noqa: E402
from microb.posts.commands import posts  # noqa: E402

main.add_command(posts)
main.add_command(cache)
main.add_command(media)
main.add_command(backup)
main.add_command(config)
main.add_command(integrity)


if __name__ == "__main__":
    main()
