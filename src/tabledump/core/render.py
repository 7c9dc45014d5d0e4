"""Plain-text rendering of dump reports.

The output is meant for people reading a log file: a banner, one metadata
block per table and the table's entries, one per line. Entries are rendered
in full with `rich.pretty.pretty_repr`, without depth, length or width
limits. Only the number of entries per table is capped (`MAX_ENTRIES`); the
trailer always states how many were left out.

Rendering is deterministic for a given report, apart from the timestamp and
the owner strings carried in the report itself.
"""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Any

from rich.pretty import pretty_repr

from tabledump.core.dumper import utcnow
from tabledump.core.tables import DumpReport, TableSnapshot

MAX_ENTRIES = 100
BANNER = "=" * 80


def format_timestamp(ts: datetime) -> str:
    """Return an ISO-8601 timestamp, using `Z` for UTC."""
    text = ts.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def format_entry(entry: Any) -> str:
    """Render one entry on a single line with its full structure."""
    return pretty_repr(
        entry,
        max_width=sys.maxsize,
        max_length=None,
        max_string=None,
        max_depth=None,
    )


def format_data(snapshot: TableSnapshot) -> str:
    """Render the data section body of one table."""
    if snapshot.failure is not None:
        return f"ERROR: {snapshot.failure}"

    entries = snapshot.entries or ()
    if not entries:
        return "(empty table)"

    lines = [
        f"  {index}. {format_entry(entry)}"
        for index, entry in enumerate(entries[:MAX_ENTRIES], start=1)
    ]
    if len(entries) > MAX_ENTRIES:
        lines.append(f"  ... ({len(entries) - MAX_ENTRIES} more entries truncated)")
    return "\n".join(lines)


def format_table(snapshot: TableSnapshot) -> str:
    """Render the metadata block and data section of one table."""
    d = snapshot.descriptor
    return "\n".join(
        [
            f"ID: {d.id}",
            f"Name: {d.name!r}",
            f"Type: {d.kind.value}",
            f"Size: {d.entry_count} entries",
            f"Memory: {d.memory_words} words",
            f"Owner: {d.owner}",
            f"Access: {d.access_level.value}",
            f"Compressed: {d.compressed}",
            "",
            "Data:",
            format_data(snapshot),
        ]
    )


def render(report: DumpReport) -> str:
    """Render a full dump report."""
    blocks = [
        f"Table {index}:\n{format_table(snapshot)}"
        for index, snapshot in enumerate(report.tables, start=1)
    ]
    lines = [
        BANNER,
        "Table Dump Report",
        BANNER,
        f"Timestamp: {format_timestamp(report.captured_at)}",
        f"Total Tables: {report.table_count}",
        BANNER,
        "",
        "\n\n".join(blocks),
        "",
        BANNER,
        "End of Dump",
        BANNER,
    ]
    return "\n".join(lines) + "\n"


def render_single(snapshot: TableSnapshot, *, rendered_at: datetime | None = None) -> str:
    """
    Render the report for a single table.

    Args:
        snapshot: Captured table.
        rendered_at: Timestamp shown in the header. Defaults to now.
    """
    if rendered_at is None:
        rendered_at = utcnow()

    d = snapshot.descriptor
    lines = [
        BANNER,
        "Single Table Dump",
        BANNER,
        f"Timestamp: {format_timestamp(rendered_at)}",
        f"Table ID: {d.id}",
        f"Table Name: {d.name!r}",
        BANNER,
        "",
        format_table(snapshot),
        "",
        BANNER,
        "End of Table Dump",
        BANNER,
    ]
    return "\n".join(lines) + "\n"
