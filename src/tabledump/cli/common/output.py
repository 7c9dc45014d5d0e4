"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def tables_table(self, tables: Iterable[Any], title: str = "Tables") -> None:
        """
        Render a table of discovered tables.

        Expects objects with .id .name .kind .entry_count .memory_words
        .owner .access_level .compressed (like tabledump.core.tables.TableDescriptor)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("ID", style="ok", no_wrap=True)
        t.add_column("Name")
        t.add_column("Type", style="meta")
        t.add_column("Size", justify="right")
        t.add_column("Memory", justify="right", style="meta")
        t.add_column("Owner", style="meta")
        t.add_column("Access")
        t.add_column("Compressed", style="meta")

        for d in tables:
            access = str(getattr(d.access_level, "value", d.access_level))
            style = "err" if access == "PRIVATE" else "ok"
            t.add_row(
                escape(str(d.id)),
                escape(repr(d.name)),
                str(getattr(d.kind, "value", d.kind)),
                str(d.entry_count),
                str(d.memory_words),
                escape(str(d.owner)),
                f"[{style}]{access}[/{style}]",
                "yes" if d.compressed else "no",
            )

        console.print(t)


out = Out()
