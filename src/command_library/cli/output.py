"""Output helpers for CLI commands.

Human-facing messages go to stderr; tables are rendered with rich on stderr
as well.
"""

import click
from rich.console import Console
from rich.table import Table


def user_output(message: str = "") -> None:
    click.echo(message, err=True)


def warning_output(message: str) -> None:
    user_output(click.style("Warning: ", fg="yellow") + message)


def print_table(table: Table) -> None:
    # Wide console so URLs are not truncated
    console = Console(stderr=True, width=200)
    console.print(table)


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
