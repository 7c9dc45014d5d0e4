"""Table discovery, content extraction and report assembly.

This module contains the domain-level operations that turn the live table set
into an immutable `DumpReport`. Every function talks to the tables only
through a `TableStore`, so the same logic runs against the in-process
registry and against test fakes.

The live tables keep changing while a dump runs. Any table may be dropped or
re-permissioned between two calls made here, so each step re-checks what it
needs instead of trusting earlier answers. Per-table problems end up inside
the snapshot of that table; only `RegistryUnavailable` is raised to callers.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from tabledump.core.registry import (
    AccessDenied,
    RegistryError,
    RegistryUnavailable,
    TableGone,
)
from tabledump.core.tables import (
    AccessLevel,
    ContentFailure,
    DumpReport,
    FailureReason,
    TableDescriptor,
    TableSnapshot,
    TableStore,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def discover_tables(store: TableStore) -> list[TableDescriptor]:
    """
    Describe every table currently alive.

    Tables that disappear between enumeration and their metadata query are
    skipped without error. The enumeration order of the store is kept as-is.

    Args:
        store: Table store to enumerate.

    Returns:
        Descriptors of the live tables, possibly empty.

    Raises:
        RegistryUnavailable: If the store itself cannot be queried.
    """
    descriptors: list[TableDescriptor] = []
    for handle in store.list_handles():
        descriptor = store.describe(handle)
        if descriptor is None:
            logger.debug("Table %s vanished during discovery; skipping", handle)
            continue
        descriptors.append(descriptor)
    logger.debug("Discovered %d table(s)", len(descriptors))
    return descriptors


def _failed(
    descriptor: TableDescriptor, reason: FailureReason, detail: str | None = None
) -> TableSnapshot:
    logger.debug("Table %s: content not captured (%s)", descriptor.id, reason.value)
    return TableSnapshot(
        descriptor=descriptor, failure=ContentFailure(reason=reason, detail=detail)
    )


def extract(store: TableStore, descriptor: TableDescriptor) -> TableSnapshot:
    """
    Capture the full content of one table.

    The table's existence and access level are checked again right before
    the read; the descriptor's cached access level is not used. A table that
    is gone yields `DELETED`, a private one `ACCESS_DENIED` without any read.
    If the table is dropped or made private between the check and the read,
    the same reasons are recorded instead of an exception. Any other error
    raised by the read is recorded as `OTHER`.

    Args:
        store: Table store the descriptor came from.
        descriptor: Table to capture.

    Returns:
        A snapshot holding either every entry of the table or a failure.

    Raises:
        RegistryUnavailable: If the store itself cannot be queried.
    """
    try:
        access = store.access_level(descriptor.handle)
        if access is None:
            return _failed(descriptor, FailureReason.DELETED)
        if access is AccessLevel.PRIVATE:
            return _failed(descriptor, FailureReason.ACCESS_DENIED)
        entries = tuple(store.read_entries(descriptor.handle))
    except RegistryUnavailable:
        raise
    except TableGone:
        return _failed(descriptor, FailureReason.DELETED)
    except AccessDenied:
        return _failed(descriptor, FailureReason.ACCESS_DENIED)
    except RegistryError as exc:
        return _failed(descriptor, FailureReason.OTHER, str(exc))
    except Exception as exc:
        logger.debug("Table %s: read failed", descriptor.id, exc_info=True)
        return _failed(descriptor, FailureReason.OTHER, str(exc) or type(exc).__name__)

    return TableSnapshot(descriptor=descriptor, entries=entries)


def dump_single(store: TableStore, name_or_id: Any) -> TableSnapshot | None:
    """
    Look up one table by name or id and capture it.

    The lookup queries the store directly instead of running a full
    discovery.

    Returns:
        The snapshot, or None if no such table exists at lookup time. A table
        that is dropped after the lookup gives a `DELETED` snapshot instead.
    """
    descriptor = store.describe(name_or_id)
    if descriptor is None:
        logger.debug("Table %r not found", name_or_id)
        return None
    return extract(store, descriptor)


def assemble(
    store: TableStore,
    descriptors: Iterable[TableDescriptor],
    *,
    max_parallel: int = 1,
    now: Callable[[], datetime] = utcnow,
) -> DumpReport:
    """
    Capture many tables into one report.

    A single timestamp is taken on entry and shared by the whole report.
    Tables are extracted independently; with `max_parallel` above one they
    are extracted on a thread pool, but the report always lists them in the
    order of `descriptors`.

    Args:
        store: Table store the descriptors came from.
        descriptors: Tables to capture, in report order.
        max_parallel: Maximum number of tables extracted concurrently.
        now: Clock used for the capture timestamp.

    Returns:
        The assembled report.
    """
    if max_parallel < 1:
        raise ValueError("max_parallel must be >= 1")

    captured_at = now()
    descriptors = list(descriptors)

    if max_parallel == 1 or len(descriptors) < 2:
        snapshots = [extract(store, d) for d in descriptors]
    else:
        workers = min(max_parallel, len(descriptors))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(extract, store, d) for d in descriptors]
            snapshots = [f.result() for f in futures]

    failed = sum(1 for s in snapshots if not s.ok)
    logger.info(
        "Captured %d table(s), %d without content", len(snapshots), failed
    )
    return DumpReport(
        captured_at=captured_at,
        table_count=len(snapshots),
        tables=tuple(snapshots),
    )
