"""Interactive confirmation for destructive commands."""

from __future__ import annotations

from rich.console import Console
from rich.prompt import Confirm

console = Console()


def confirm(message: str, details: list[str] | None = None, auto_yes: bool = False) -> bool:
    """Ask a yes/no question, defaulting to no.

    ``details`` are printed above the question. With ``auto_yes`` the
    question is echoed and answered without reading input.
    """
    for line in details or []:
        console.print(f"  {line}", style="dim", markup=False)

    if auto_yes:
        console.print(f"{message} [auto-yes]")
        return True

    return bool(Confirm.ask(message, default=False))
