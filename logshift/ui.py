"""Central UI handler for logshift.

Single source of truth for Rich console styling. The console writes to
stderr so that rewritten source printed on stdout can be piped.

Usage:
    from logshift.ui import console, print_header, print_error

    console.print("[success]3 files rewritten[/success]")
    print_header("REWRITE SUMMARY")
"""

import sys

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

LOGSHIFT_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "path": "bold cyan",
    "dim": "dim white",
})

console = Console(
    theme=LOGSHIFT_THEME,
    stderr=True,
    force_terminal=sys.stderr.isatty(),
)


def print_header(title: str) -> None:
    """Print a styled section header with horizontal rules."""
    console.rule(f"[bold]{title}[/bold]")


def print_error(msg: str) -> None:
    console.print(f"[error]ERROR:[/error] {msg}")


def print_warning(msg: str) -> None:
    console.print(f"[warning]WARNING:[/warning] {msg}")


def print_success(msg: str) -> None:
    console.print(f"[success]OK:[/success] {msg}")


def report_table(title: str, columns: list[tuple[str, str]]) -> Table:
    """Create a summary table with (header, style) columns."""
    table = Table(title=title, show_lines=False, header_style="bold")
    for header, style in columns:
        table.add_column(header, style=style)
    return table
