"""Core domain models for table dumps.

These models describe tables, captured table content and dump reports in a
simple, immutable form. They are intentionally free of registry internals and
of any output or CLI concerns, so the same values can be rendered, written to
disk or inspected in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Hashable, Protocol


class TableKind(str, Enum):
    """
    Enumeration of table kinds.

    Values:
        UNIQUE_ORDERED: One entry per key, iterated in key order.
        UNIQUE_UNORDERED: One entry per key, no defined iteration order.
        MULTI_ORDERED: Duplicate keys allowed, iterated in key order.
        MULTI_UNORDERED: Duplicate keys allowed, no defined iteration order.
    """

    UNIQUE_ORDERED = "UNIQUE_ORDERED"
    UNIQUE_UNORDERED = "UNIQUE_UNORDERED"
    MULTI_ORDERED = "MULTI_ORDERED"
    MULTI_UNORDERED = "MULTI_UNORDERED"

    @property
    def unique(self) -> bool:
        return self in (TableKind.UNIQUE_ORDERED, TableKind.UNIQUE_UNORDERED)

    @property
    def ordered(self) -> bool:
        return self in (TableKind.UNIQUE_ORDERED, TableKind.MULTI_ORDERED)


class AccessLevel(str, Enum):
    """
    Read visibility of a table for threads other than its owner.

    Values:
        PUBLIC: Any thread may read and write.
        PROTECTED: Any thread may read, only the owner may write.
        PRIVATE: Only the owner may read or write.
    """

    PUBLIC = "PUBLIC"
    PROTECTED = "PROTECTED"
    PRIVATE = "PRIVATE"


class FailureReason(str, Enum):
    """Why the content of a table could not be captured."""

    DELETED = "DELETED"
    ACCESS_DENIED = "ACCESS_DENIED"
    OTHER = "OTHER"


@dataclass(frozen=True)
class TableDescriptor:
    """
    Metadata of one table, captured at discovery time.

    Attributes:
        id: Printable identifier of the table. Only used for display.
        handle: Live reference used to query the table again. It may go
                stale if the table is dropped after discovery.
        name: Symbolic name, or the handle itself for anonymous tables.
        kind: Key uniqueness and ordering of the table.
        entry_count: Number of entries at discovery time (advisory).
        memory_words: Estimated memory use in machine words (advisory).
        owner: Display string of the owning thread.
        access_level: Access level at discovery time. Not trusted for reads.
        compressed: Whether the table was created as compressed (advisory).
    """

    id: str
    handle: Hashable
    name: Any
    kind: TableKind
    entry_count: int
    memory_words: int
    owner: str
    access_level: AccessLevel
    compressed: bool = False


@dataclass(frozen=True)
class ContentFailure:
    """Captured reason why a table's content is missing from a snapshot."""

    reason: FailureReason
    detail: str | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.reason.value} ({self.detail})"
        return self.reason.value


@dataclass(frozen=True)
class TableSnapshot:
    """
    A table descriptor together with its captured content.

    Exactly one of `entries` and `failure` is set. Content is either read in
    full or not at all.
    """

    descriptor: TableDescriptor
    entries: tuple[Any, ...] | None = None
    failure: ContentFailure | None = None

    def __post_init__(self) -> None:
        if (self.entries is None) == (self.failure is None):
            raise ValueError("TableSnapshot needs exactly one of entries or failure.")

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class DumpReport:
    """Snapshots of many tables sharing one capture timestamp."""

    captured_at: datetime
    table_count: int
    tables: tuple[TableSnapshot, ...]


class TableStore(Protocol):
    """Interface to the live table set used by the dump engine."""

    def list_handles(self) -> list[Hashable]:
        """Return handles of all tables currently alive."""
        ...

    def describe(self, name_or_id: Any) -> TableDescriptor | None:
        """Return a descriptor for a table, or None if it does not exist."""
        ...

    def access_level(self, handle: Hashable) -> AccessLevel | None:
        """Return the current access level, or None if the table is gone."""
        ...

    def read_entries(self, handle: Hashable) -> list[Any]:
        """Return the full content of a table in a single read."""
        ...
