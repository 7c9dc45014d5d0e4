from __future__ import annotations

from typing import Any, Hashable

from tabledump.core.registry import TableInfo, TableRegistry
from tabledump.core.tables import AccessLevel, TableDescriptor


class RegistryAdapter:
    """Adapter exposing a `TableRegistry` through the `TableStore` interface."""

    def __init__(self, registry: TableRegistry) -> None:
        self.registry = registry

    def list_handles(self) -> list[Hashable]:
        """Return handles of all live tables in registry order."""
        return list(self.registry.handles())

    def describe(self, name_or_id: Any) -> TableDescriptor | None:
        """Return a descriptor for a table, or None if it does not exist."""
        info = self.registry.info(name_or_id)
        if info is None:
            return None
        return self._to_descriptor(info)

    def access_level(self, handle: Hashable) -> AccessLevel | None:
        """Return the table's current access level, or None if it is gone."""
        return self.registry.access_level(handle)

    def read_entries(self, handle: Hashable) -> list[Any]:
        """Read every entry of a table in a single registry call."""
        return self.registry.to_list(handle)

    @staticmethod
    def _to_descriptor(info: TableInfo) -> TableDescriptor:
        # Anonymous tables are shown by their handle
        return TableDescriptor(
            id=str(info.ref),
            handle=info.ref,
            name=info.name if info.name is not None else info.ref,
            kind=info.kind,
            entry_count=info.size,
            memory_words=info.memory,
            owner=str(info.owner),
            access_level=info.access,
            compressed=info.compressed,
        )
