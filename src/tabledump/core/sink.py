"""File output for rendered dumps.

Reports are written into one log directory with timestamped file names:

    report_2026-10-19T10-30-45-123456Z.log            # full dumps
    table_cache_2026-10-19T10-30-45-123456Z.log       # single table by name
    table__Table_7__2026-10-19T10-30-45-123456Z.log   # anonymous table by id

Writes are atomic: content goes to a `.partial` sibling first and is moved
into place with `os.replace`, so a report is either complete under its final
name or not there at all.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from tabledump.core.render import format_timestamp

logger = logging.getLogger(__name__)


class SinkError(RuntimeError):
    """Raised when a dump cannot be written. `reason` holds the OS message."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class MkdirFailed(SinkError):
    """Raised when the log directory cannot be created."""

    def __str__(self) -> str:
        return f"mkdir failed: {self.reason}"


class WriteFailed(SinkError):
    """Raised when a report file cannot be written."""

    def __str__(self) -> str:
        return f"write failed: {self.reason}"


def _file_timestamp(ts: datetime) -> str:
    """Return an ISO-8601 timestamp with `:` and `.` replaced by `-`."""
    return format_timestamp(ts).replace(":", "-").replace(".", "-")


def _safe_name(name_or_id: Any) -> str:
    """Return a table name or id usable inside a file name."""
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", str(name_or_id))


def report_filename(ts: datetime, extension: str = "log") -> str:
    """Return the file name of a full dump captured at `ts`."""
    return f"report_{_file_timestamp(ts)}.{extension}"


def table_filename(name_or_id: Any, ts: datetime, extension: str = "log") -> str:
    """Return the file name of a single-table dump captured at `ts`."""
    return f"table_{_safe_name(name_or_id)}_{_file_timestamp(ts)}.{extension}"


class LogSink:
    """Writes rendered dumps into a log directory."""

    def __init__(self, directory: Path | str, extension: str = "log") -> None:
        self.directory = Path(directory).expanduser()
        self.extension = extension.lstrip(".") or "log"

    def ensure_destination(self) -> Path:
        """Create the log directory (and parents) if needed and return it."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MkdirFailed(exc.strerror or str(exc)) from exc
        return self.directory

    def write_text(self, path: Path, content: str) -> Path:
        """
        Atomically write `content` to `path`.

        Characters that cannot be encoded as UTF-8 (lone surrogates) are
        written as backslash escapes.

        Raises:
            WriteFailed: If the file cannot be written. No partial file is
                         left at `path`.
        """
        partial = path.with_name(path.name + ".partial")
        data = content.encode("utf-8", errors="backslashreplace")
        try:
            partial.write_bytes(data)
            os.replace(partial, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                partial.unlink()
            raise WriteFailed(exc.strerror or str(exc)) from exc
        logger.info("Wrote %s (%d bytes)", path, len(data))
        return path

    def write_report(self, content: str, captured_at: datetime) -> Path:
        """Write a full dump and return its path."""
        directory = self.ensure_destination()
        return self.write_text(
            directory / report_filename(captured_at, self.extension), content
        )

    def write_table(self, name_or_id: Any, content: str, captured_at: datetime) -> Path:
        """Write a single-table dump and return its path."""
        directory = self.ensure_destination()
        return self.write_text(
            directory / table_filename(name_or_id, captured_at, self.extension),
            content,
        )
