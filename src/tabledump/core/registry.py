"""In-process table registry.

This module provides the process-wide table facility that the dump engine
reads from: a thread-safe registry of key/value tables that any thread of the
current process can create, fill, re-permission and drop at any time.

Each table is owned by the thread that created it. Its access level decides
what other threads may do with it (see `AccessLevel`). Entries are tuples
keyed by their first element.

Handles (`TableRef`) stay valid only while their table exists. Every call that
names a dropped table raises `TableGone`, and every call made after
`shutdown()` raises `RegistryUnavailable`.
"""

from __future__ import annotations

import re
import sys
import threading
from dataclasses import dataclass
from itertools import count
from typing import Any, Hashable

from tabledump.core.tables import AccessLevel, TableKind

_WORD_SIZE = 8
_REF_RE = re.compile(r"^#Table<(\d+)>$")


class RegistryError(Exception):
    """Base class for table registry errors."""


class RegistryUnavailable(RegistryError):
    """Raised when the registry has been shut down."""


class TableGone(RegistryError):
    """Raised when a handle or name refers to a table that does not exist."""


class AccessDenied(RegistryError):
    """Raised when the calling thread may not read or modify a table."""


@dataclass(frozen=True, repr=False)
class TableRef:
    """Opaque handle to a table in a `TableRegistry`."""

    ident: int

    def __repr__(self) -> str:
        return f"#Table<{self.ident}>"

    __str__ = __repr__


@dataclass(frozen=True)
class Owner:
    """Thread that owns a table."""

    ident: int | None
    name: str

    def __str__(self) -> str:
        return f"<thread {self.name} ({self.ident})>"

    @classmethod
    def of(cls, thread: threading.Thread) -> Owner:
        return cls(ident=thread.ident, name=thread.name)


@dataclass(frozen=True)
class TableInfo:
    """Point-in-time metadata of one table."""

    ref: TableRef
    name: str | None
    kind: TableKind
    size: int
    memory: int
    owner: Owner
    access: AccessLevel
    compressed: bool


def _sorted_keys(keys: list[Hashable]) -> list[Hashable]:
    """Sort keys naturally, falling back to (type, repr) order for mixed keys."""
    try:
        return sorted(keys)
    except TypeError:
        return sorted(keys, key=lambda k: (type(k).__name__, repr(k)))


class _Table:
    """Mutable table state. Only touched with the registry lock held."""

    def __init__(
        self,
        ref: TableRef,
        name: str | None,
        kind: TableKind,
        access: AccessLevel,
        compressed: bool,
        owner: Owner,
    ) -> None:
        self.ref = ref
        self.name = name
        self.kind = kind
        self.access = access
        self.compressed = compressed
        self.owner = owner
        self.rows: dict[Hashable, list[tuple]] = {}

    def put(self, entry: tuple) -> None:
        key = entry[0]
        if self.kind.unique:
            self.rows[key] = [entry]
        else:
            self.rows.setdefault(key, []).append(entry)

    def entries(self) -> list[tuple]:
        keys = list(self.rows)
        if self.kind.ordered:
            keys = _sorted_keys(keys)
        return [entry for key in keys for entry in self.rows[key]]

    def size(self) -> int:
        return sum(len(bucket) for bucket in self.rows.values())

    def memory(self) -> int:
        total = sys.getsizeof(self.rows)
        for bucket in self.rows.values():
            total += sys.getsizeof(bucket)
            total += sum(sys.getsizeof(entry) for entry in bucket)
        return total // _WORD_SIZE

    def info(self) -> TableInfo:
        return TableInfo(
            ref=self.ref,
            name=self.name,
            kind=self.kind,
            size=self.size(),
            memory=self.memory(),
            owner=self.owner,
            access=self.access,
            compressed=self.compressed,
        )


class TableRegistry:
    """
    Thread-safe registry of in-process key/value tables.

    All state is guarded by one re-entrant lock, so every individual call
    observes a consistent view. Nothing is consistent across calls: another
    thread may drop or change a table between any two of them.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: dict[int, _Table] = {}
        self._names: dict[str, int] = {}
        self._ids = count(1)
        self._closed = False

    # -- internal helpers (lock held) ---------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise RegistryUnavailable("Table registry has been shut down.")

    def _resolve(self, name_or_id: Any) -> _Table | None:
        if isinstance(name_or_id, TableRef):
            ident = name_or_id.ident
        elif isinstance(name_or_id, bool):
            return None
        elif isinstance(name_or_id, int):
            ident = name_or_id
        elif isinstance(name_or_id, str):
            if name_or_id in self._names:
                ident = self._names[name_or_id]
            else:
                m = _REF_RE.match(name_or_id.strip())
                if m:
                    ident = int(m.group(1))
                elif name_or_id.isdigit():
                    ident = int(name_or_id)
                else:
                    return None
        else:
            return None
        return self._tables.get(ident)

    def _get(self, name_or_id: Any) -> _Table:
        self._check_open()
        table = self._resolve(name_or_id)
        if table is None:
            raise TableGone(f"No such table: {name_or_id!r}")
        return table

    @staticmethod
    def _is_owner(table: _Table) -> bool:
        return table.owner.ident == threading.get_ident()

    def _check_write(self, table: _Table) -> None:
        if table.access is not AccessLevel.PUBLIC and not self._is_owner(table):
            raise AccessDenied(f"Table {table.ref} is {table.access.value.lower()}.")

    def _check_owner(self, table: _Table) -> None:
        if not self._is_owner(table):
            raise AccessDenied(f"Only the owner of table {table.ref} may do this.")

    # -- table lifecycle ----------------------------------------------------

    def create(
        self,
        name: str | None = None,
        *,
        kind: TableKind = TableKind.UNIQUE_UNORDERED,
        access: AccessLevel = AccessLevel.PROTECTED,
        compressed: bool = False,
    ) -> TableRef:
        """
        Create a new table owned by the calling thread.

        Args:
            name: Optional symbolic name. Named tables can be looked up by
                  name; names are unique among live tables.
            kind: Key uniqueness and ordering of the table.
            access: Access level for threads other than the owner.
            compressed: Advisory flag, reported in table metadata only.

        Returns:
            Handle of the new table.

        Raises:
            TypeError: If `name` is not a string.
            ValueError: If a live table already uses `name`.
        """
        if name is not None and not isinstance(name, str):
            raise TypeError(f"Table name must be a string, got {type(name).__name__}")
        with self._lock:
            self._check_open()
            if name is not None and name in self._names:
                raise ValueError(f"Table name already in use: {name!r}")
            ref = TableRef(next(self._ids))
            self._tables[ref.ident] = _Table(
                ref=ref,
                name=name,
                kind=TableKind(kind),
                access=AccessLevel(access),
                compressed=compressed,
                owner=Owner.of(threading.current_thread()),
            )
            if name is not None:
                self._names[name] = ref.ident
            return ref

    def drop(self, table: Any) -> None:
        """Delete a table. Allowed for its owner, or anyone if it is public."""
        with self._lock:
            t = self._get(table)
            self._check_write(t)
            del self._tables[t.ref.ident]
            if t.name is not None:
                self._names.pop(t.name, None)

    def set_access(self, table: Any, access: AccessLevel) -> None:
        """Change the access level of a table (owner only)."""
        with self._lock:
            t = self._get(table)
            self._check_owner(t)
            t.access = AccessLevel(access)

    def transfer(self, table: Any, thread: threading.Thread) -> None:
        """Hand ownership of a table to another thread (owner only)."""
        with self._lock:
            t = self._get(table)
            self._check_owner(t)
            t.owner = Owner.of(thread)

    def shutdown(self) -> None:
        """Drop every table and refuse all further calls."""
        with self._lock:
            self._tables.clear()
            self._names.clear()
            self._closed = True

    # -- entries ------------------------------------------------------------

    def insert(self, table: Any, *entries: tuple) -> None:
        """
        Insert entries into a table.

        Each entry must be a non-empty tuple whose first element is a hashable
        key. Unique tables replace an existing entry with the same key; multi
        tables keep every entry.
        """
        for entry in entries:
            if not isinstance(entry, tuple) or not entry:
                raise ValueError(f"Entries must be non-empty tuples, got {entry!r}")
        with self._lock:
            t = self._get(table)
            self._check_write(t)
            for entry in entries:
                t.put(entry)

    def lookup(self, table: Any, key: Hashable) -> list[tuple]:
        """Return all entries stored under `key`."""
        with self._lock:
            t = self._get(table)
            if t.access is AccessLevel.PRIVATE and not self._is_owner(t):
                raise AccessDenied(f"Table {t.ref} is private.")
            return list(t.rows.get(key, []))

    def delete_key(self, table: Any, key: Hashable) -> None:
        """Remove all entries stored under `key`."""
        with self._lock:
            t = self._get(table)
            self._check_write(t)
            t.rows.pop(key, None)

    def clear(self, table: Any) -> None:
        """Remove every entry of a table."""
        with self._lock:
            t = self._get(table)
            self._check_write(t)
            t.rows.clear()

    # -- queries ------------------------------------------------------------

    def handles(self) -> list[TableRef]:
        """Return handles of all live tables in creation order."""
        with self._lock:
            self._check_open()
            return [t.ref for t in self._tables.values()]

    def resolve(self, name_or_id: Any) -> TableRef | None:
        """
        Resolve a handle, integer id, `#Table<n>` string or table name.

        Returns:
            The table handle, or None if no live table matches.
        """
        with self._lock:
            self._check_open()
            t = self._resolve(name_or_id)
            return t.ref if t else None

    def info(self, name_or_id: Any) -> TableInfo | None:
        """Return table metadata, or None if the table does not exist."""
        with self._lock:
            self._check_open()
            t = self._resolve(name_or_id)
            return t.info() if t else None

    def access_level(self, name_or_id: Any) -> AccessLevel | None:
        """Return the current access level, or None if the table does not exist."""
        with self._lock:
            self._check_open()
            t = self._resolve(name_or_id)
            return t.access if t else None

    def to_list(self, table: Any) -> list[tuple]:
        """
        Return a copy of every entry in a table.

        The copy is taken in one step under the registry lock. Ordered tables
        are returned in key order.

        Raises:
            TableGone: If the table does not exist.
            AccessDenied: If the table is private to another thread.
        """
        with self._lock:
            t = self._get(table)
            if t.access is AccessLevel.PRIVATE and not self._is_owner(t):
                raise AccessDenied(f"Table {t.ref} is private.")
            return t.entries()


_default_registry = TableRegistry()


def default_registry() -> TableRegistry:
    """Return the process-wide table registry."""
    return _default_registry
