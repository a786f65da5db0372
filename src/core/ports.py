"""Ports (interfaces) used by the core repositories.

Ports define the minimal contract for table storage adapters so that the
core can be reused with different backends.
"""

from __future__ import annotations

from typing import ContextManager, List, Protocol, Sequence

from core.models import Record, TableSchema


class StorageError(RuntimeError):
    """Persisted table content is unreadable or the medium is unavailable."""


class TableStorePort(Protocol):
    """Storage operations required by a record repository."""

    schema: TableSchema

    def load(self) -> List[Record]:
        ...

    def save(self, records: Sequence[Record]) -> None:
        ...

    def next_id(self, records: Sequence[Record]) -> int:
        ...

    def locked(self) -> ContextManager[None]:
        ...
