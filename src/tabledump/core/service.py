"""Dump entry points: dump all tables, dump one table, list tables.

This module wires discovery, extraction, rendering and file output together.
Each dump returns a `DumpOutcome` instead of raising, so callers (the CLI,
debugging hooks, tests) can tell success, an unknown table and a failed write
apart. The one exception is `RegistryUnavailable`, which means the table
registry itself is broken and is always raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from tabledump.core.adapters.registry import RegistryAdapter
from tabledump.core.config import DumpConfig
from tabledump.core.dumper import assemble, discover_tables, dump_single, utcnow
from tabledump.core.registry import TableRegistry, default_registry
from tabledump.core.render import render, render_single
from tabledump.core.sink import LogSink, SinkError
from tabledump.core.tables import TableDescriptor, TableStore

logger = logging.getLogger(__name__)


class DumpStatus(str, Enum):
    """
    Result of a dump call.

    Values:
        OK: The report was written.
        NOT_FOUND: The requested table does not exist; nothing was written.
        FAILED: The report could not be written.
    """

    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


@dataclass(frozen=True)
class DumpOutcome:
    """Outcome of one dump call."""

    status: DumpStatus
    path: Path | None = None
    error: SinkError | None = None

    @property
    def ok(self) -> bool:
        return self.status is DumpStatus.OK

    @property
    def reason(self) -> str | None:
        if self.error is not None:
            return str(self.error)
        if self.status is DumpStatus.NOT_FOUND:
            return "table not found"
        return None


class DumpService:
    """Runs dumps against one table store and writes them to one sink."""

    def __init__(self, store: TableStore, sink: LogSink, *, max_parallel: int = 1):
        if max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        self.store = store
        self.sink = sink
        self.max_parallel = max_parallel

    def list_tables(self) -> list[TableDescriptor]:
        """Return metadata of every live table without reading any content."""
        return discover_tables(self.store)

    def dump_all(self) -> DumpOutcome:
        """
        Dump every live table into one report file.

        Tables whose content cannot be captured still appear in the report
        with their failure reason; the dump as a whole succeeds.
        """
        descriptors = discover_tables(self.store)
        report = assemble(self.store, descriptors, max_parallel=self.max_parallel)
        content = render(report)
        try:
            path = self.sink.write_report(content, report.captured_at)
        except SinkError as exc:
            logger.error("Could not write dump: %s", exc)
            return DumpOutcome(status=DumpStatus.FAILED, error=exc)
        return DumpOutcome(status=DumpStatus.OK, path=path)

    def dump_table(self, name_or_id: Any) -> DumpOutcome:
        """Dump one table, looked up by name or id, into its own file."""
        snapshot = dump_single(self.store, name_or_id)
        if snapshot is None:
            return DumpOutcome(status=DumpStatus.NOT_FOUND)

        rendered_at = utcnow()
        content = render_single(snapshot, rendered_at=rendered_at)
        try:
            path = self.sink.write_table(name_or_id, content, rendered_at)
        except SinkError as exc:
            logger.error("Could not write dump of table %r: %s", name_or_id, exc)
            return DumpOutcome(status=DumpStatus.FAILED, error=exc)
        return DumpOutcome(status=DumpStatus.OK, path=path)


def build_service(
    registry: TableRegistry | None = None,
    config: DumpConfig | None = None,
) -> DumpService:
    """
    Build a `DumpService` for a registry and configuration.

    Args:
        registry: Table registry to dump. Defaults to the process-wide one.
        config: Output settings. Defaults to `DumpConfig.from_env()`.
    """
    registry = registry if registry is not None else default_registry()
    config = config if config is not None else DumpConfig.from_env()
    return DumpService(
        RegistryAdapter(registry),
        LogSink(config.log_dir, extension=config.extension),
        max_parallel=config.max_parallel,
    )


def dump_all_tables(
    registry: TableRegistry | None = None, config: DumpConfig | None = None
) -> DumpOutcome:
    """Dump every table of `registry` (default: the process-wide registry)."""
    return build_service(registry, config).dump_all()


def dump_table(
    name_or_id: Any,
    registry: TableRegistry | None = None,
    config: DumpConfig | None = None,
) -> DumpOutcome:
    """Dump one table of `registry` (default: the process-wide registry)."""
    return build_service(registry, config).dump_table(name_or_id)


def list_tables(registry: TableRegistry | None = None) -> list[TableDescriptor]:
    """List the tables of `registry` (default: the process-wide registry)."""
    registry = registry if registry is not None else default_registry()
    return discover_tables(RegistryAdapter(registry))
