"""CLI commands for index/content integrity checking."""

import json as json_module

import click
from rich.console import Console
from rich.table import Table

console = Console()

SEVERITY_STYLES = {"error": "red", "warning": "yellow", "info": "blue"}


@click.group(name="integrity")
def integrity() -> None:
    """Index integrity checking and repair.

    Validates that posts.json, posts/*.html and the cache snapshot agree.
    """
    pass


@integrity.command(name="check")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--fix", "apply_fix", is_flag=True, help="Apply auto-fixable repairs")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed information")
def integrity_check(as_json: bool, apply_fix: bool, verbose: bool) -> None:
    """Run integrity checks on the post index.

    Exits with status 1 when errors are found.

    \b
    Examples:
        microb integrity check          # Full check
        microb integrity check --json   # JSON output
        microb integrity check --fix    # Remove orphaned content, drop stale cache
    """
    from microb.core.config import get_paths
    from microb.core.errors import StoreError
    from microb.core.integrity import IntegrityChecker
    from microb.core.site import open_cache

    paths = get_paths()
    checker = IntegrityChecker(paths, cache=open_cache(paths))

    try:
        result = checker.check()
    except StoreError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    fixed = checker.fix(result) if apply_fix else []

    if as_json:
        data = result.to_dict()
        if apply_fix:
            data["fixed"] = [i.to_dict() for i in fixed]
        click.echo(json_module.dumps(data, indent=2))
        if result.has_errors:
            raise SystemExit(1)
        return

    counts = ", ".join(f"{count} {name.replace('_', ' ')}" for name, count in sorted(result.checked.items()))
    console.print(f"[dim]Checked {counts}[/dim]")

    if not result.issues:
        console.print("[green]All integrity checks passed![/green]")
        return

    shown = result.issues if verbose else result.errors() or result.issues
    table = Table(title=f"Integrity issues ({len(result.issues)})", header_style="bold cyan")
    table.add_column("Severity")
    table.add_column("Entry", style="bold")
    table.add_column("Problem")
    table.add_column("Fix", justify="center")
    for issue in shown:
        style = SEVERITY_STYLES[issue.severity.value]
        problem = issue.message
        if verbose and issue.extra:
            problem += "\n" + "\n".join(f"[dim]{k}: {v}[/dim]" for k, v in issue.extra.items())
        table.add_row(
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.entry_id,
            problem,
            "[green]yes[/green]" if issue.fixable else "",
        )
    console.print(table)

    if len(shown) < len(result.issues):
        console.print(f"[dim]{len(result.issues) - len(shown)} warning/info issue(s) hidden; use --verbose[/dim]")

    if fixed:
        console.print(f"[green]Fixed {len(fixed)} issue(s).[/green]")
    elif result.fixable_issues():
        console.print("[dim]Run 'microb integrity check --fix' to repair the fixable ones.[/dim]")

    if result.has_errors:
        console.print("[red]Integrity check found errors.[/red]")
        raise SystemExit(1)
    console.print("[yellow]No errors, only warnings/info.[/yellow]")
