"""Terminal UI utilities for tabledump."""

from __future__ import annotations

import questionary

from tabledump.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from tabledump.core.tables import TableDescriptor

_MAX_TABLE_NAME_WIDTH = 64


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _table_label(table: TableDescriptor) -> str:
    """Return the display name of a table (its name, or its id if anonymous)."""
    return table.name if isinstance(table.name, str) else table.id


def _table_choice_title(table: TableDescriptor, *, name_width: int) -> str:
    """Format one table choice as `<name>  (id: <id>, <n> entries)` with aligned columns."""
    short_name = _truncate(_table_label(table), _MAX_TABLE_NAME_WIDTH)
    return f"{short_name.ljust(name_width)}  (id: {table.id}, {table.entry_count} entries)"


def select_table(tables: list[TableDescriptor]) -> TableDescriptor | None:
    """Display a select prompt to pick one table from a list.

    Args:
        tables: Descriptors of the tables to choose from.

    Returns:
        The selected descriptor, or None if the prompt was cancelled.
    """
    if not tables:
        return None

    shown_names = [_truncate(_table_label(t), _MAX_TABLE_NAME_WIDTH) for t in tables]
    name_width = max((len(name) for name in shown_names), default=0)

    choices = [
        questionary.Choice(
            title=_table_choice_title(table, name_width=name_width),
            value=table,
        )
        for table in tables
    ]

    return questionary.select(
        "Select a table to dump:",
        choices=choices,
        style=QUESTIONARY_STYLE_SELECT,
        instruction="Use ↑/↓ then Enter",
    ).ask()
