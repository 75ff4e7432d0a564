from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from rich.console import Console
from rich.table import Table

from duplicator.core.exceptions import DuplicatorError
from duplicator.models.app import TemplateApp

console = Console()


def info(msg: str) -> None:
    console.print(f"[bold blue]ℹ[/] {msg}")


def success(msg: str) -> None:
    console.print(f"[bold green]✓[/] {msg}")


def error(msg: str) -> None:
    console.print(f"[bold red]✗[/] {msg}")


def report_failure(exc: DuplicatorError) -> None:
    """Print a workflow error, flagging a copy left behind by a late failure."""
    error(f"{exc.code}: {exc.message}")
    if exc.new_app_id:
        console.print(f"  [yellow]App {exc.new_app_id} was created but may be incomplete[/]")


@contextmanager
def status_spinner(msg: str) -> Iterator[None]:
    with console.status(f"[bold cyan]{msg}..."):
        yield


def print_templates(apps: Sequence[TemplateApp]) -> None:
    table = Table(title="Template apps", show_lines=False)
    for col in ("Name", "ID", "Description"):
        table.add_column(col, style="cyan")
    for app in apps:
        table.add_row(app.name, app.id, app.description)
    console.print(table)
