"""
CLI glue for admin commands: the --password option and dashboard login.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

from microb.admin.auth import AdminGate
from microb.admin.dashboard import Dashboard
from microb.core.config import get_paths
from microb.core.errors import AuthorizationError
from microb.core.settings import get_config_value

F = TypeVar("F", bound=Callable[..., Any])

PASSWORD_ENVVAR = "MICROB_ADMIN_PASSWORD"


def password_option(func: F) -> F:
    """Add a ``--password`` option, read from the environment or prompted for."""
    return click.option(
        "--password",
        envvar=PASSWORD_ENVVAR,
        prompt="Admin password",
        hide_input=True,
        help=f"Admin password (or set {PASSWORD_ENVVAR})",
    )(func)


def open_dashboard(password: str) -> Dashboard:
    """Log in and return a dashboard for the current site.

    Raises:
        click.ClickException: If the password is not accepted
    """
    from microb.core.site import open_store

    paths = get_paths()
    gate = AdminGate(get_config_value("admin.password_hash", config_path=paths.config_file))
    try:
        session = gate.login(password)
    except AuthorizationError as e:
        raise click.ClickException(str(e)) from e
    return Dashboard(open_store(paths), session)
