"""Console output helpers for click commands."""

import functools
import sys
from typing import Any, Callable, Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def info(message: str) -> None:
    """Print an informational message."""
    err_console.print(f"[blue]ℹ[/blue] {message}")


def success(message: str) -> None:
    """Print a success message."""
    err_console.print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[bold red]✗[/bold red] {message}")


def create_table(title: Optional[str] = None, **kwargs: Any) -> Table:
    """
    Create a rich table with the common style.

    Args:
        title: Table title

    Returns:
        Table ready for add_column/add_row
    """
    return Table(title=title, header_style="bold cyan", show_lines=False, **kwargs)


def print_table(table: Table) -> None:
    """Print a table to stderr so stdout stays clean for data."""
    err_console.print(table)


def handle_errors(func: Callable) -> Callable:
    """
    Wrap a click command with uniform error reporting.

    Click exits and explicit sys.exit() calls pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.exceptions.Exit, click.ClickException, click.Abort, SystemExit):
            raise
        except KeyboardInterrupt:
            error("Interrupted")
            sys.exit(130)
        except Exception as e:
            error(str(e))
            sys.exit(1)

    return wrapper
