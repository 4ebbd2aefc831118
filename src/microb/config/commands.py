"""
Configuration management CLI commands.

Manages microb settings stored in .microb/config.yaml.
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from microb.core.settings import (
    CONFIG_SCHEMA,
    coerce_config_value,
    get_config_path,
    get_config_value,
    load_config,
    set_config_value,
    unset_config_value,
)

console = Console()

# Settings whose value is never echoed back
SECRET_KEYS = {"admin.password_hash"}


def _display(key: str, value: object) -> str:
    if key in SECRET_KEYS and value:
        return "********"
    return str(value)


def _unknown_key(key: str) -> None:
    console.print(f"[red]Unknown setting: {key}[/red]")
    console.print("\nAvailable settings:")
    for k in CONFIG_SCHEMA:
        console.print(f"  - {k}")
    raise SystemExit(1)


@click.group()
def config():
    """Manage microb configuration.

    Settings are stored in .microb/config.yaml.
    """
    pass


@config.command(name="show")
@click.option("--all", "show_all", is_flag=True, help="Show all settings including defaults")
def show_cmd(show_all: bool):
    """Show current configuration.

    Without --all, only shows settings that differ from defaults.
    """
    stored = load_config()
    config_path = get_config_path()

    if not stored and not show_all:
        console.print("[dim]No custom configuration set. Using defaults.[/dim]")
        console.print(f"[dim]Config file: {config_path}[/dim]")
        console.print("\n[dim]Use 'microb config show --all' to see all settings.[/dim]")
        return

    table = Table(title=f"Settings ({config_path.name})", header_style="bold cyan")
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_column("From", style="dim")
    table.add_column("Description", style="dim")

    for key, schema in CONFIG_SCHEMA.items():
        current = get_config_value(key)
        source = "default" if current == schema["default"] else "site"
        if show_all or source == "site":
            table.add_row(key, _display(key, current), source, schema["description"])

    console.print(table)
    console.print(f"\n[dim]Config file: {config_path}[/dim]")


@config.command(name="get")
@click.argument("key")
def get_cmd(key: str):
    """Get a configuration value.

    Examples:
        microb config get cache.ttl_seconds
        microb config get admin.per_page
    """
    if key not in CONFIG_SCHEMA:
        _unknown_key(key)

    value = get_config_value(key)
    if value == CONFIG_SCHEMA[key]["default"]:
        console.print(f"{key} = {_display(key, value)} [dim](default)[/dim]")
    else:
        console.print(f"{key} = {_display(key, value)}")


@config.command(name="set")
@click.argument("key")
@click.argument("value")
def set_cmd(key: str, value: str):
    """Set a configuration value.

    Examples:
        microb config set cache.ttl_seconds 3600
        microb config set backup.keep_count 5
    """
    if key not in CONFIG_SCHEMA:
        _unknown_key(key)
    if key in SECRET_KEYS:
        console.print("[red]Use 'microb config passwd' to change the admin password.[/red]")
        raise SystemExit(1)

    try:
        typed_value = coerce_config_value(key, value)
    except ValueError:
        expected = CONFIG_SCHEMA[key]["type"].__name__
        console.print(f"[red]Invalid value type. Expected {expected}[/red]")
        raise SystemExit(1)

    set_config_value(key, typed_value)
    console.print(f"[green]Set {key} = {typed_value}[/green]")


@config.command(name="unset")
@click.argument("key")
def unset_cmd(key: str):
    """Reset a setting to its default."""
    if key not in CONFIG_SCHEMA:
        _unknown_key(key)

    if unset_config_value(key):
        default = _display(key, CONFIG_SCHEMA[key]["default"])
        console.print(f"[green]Reset {key} to default ({default})[/green]")
    else:
        console.print(f"[dim]{key} is already at default[/dim]")


@config.command(name="passwd")
@click.option(
    "--password",
    prompt="New admin password",
    hide_input=True,
    confirmation_prompt=True,
    help="New admin password",
)
def passwd_cmd(password: str):
    """Set the admin password.

    Only a salted PBKDF2 hash is stored.
    """
    from microb.admin.auth import hash_password

    if not password:
        console.print("[red]Password must not be empty.[/red]")
        raise SystemExit(1)

    set_config_value("admin.password_hash", hash_password(password))
    console.print("[green]Admin password updated.[/green]")


@config.command(name="path")
def path_cmd():
    """Show path to config file."""
    console.print(str(get_config_path()))
