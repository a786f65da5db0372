"""Record repository: create-with-dedup, listing and upvoting for one kind.

This module is storage-agnostic. It only relies on the table store port, so
the same logic serves bug reports and feature requests against any backend.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from operator import attrgetter
from typing import Callable, List, Optional, Union

from core.config import DedupConfig
from core.models import Created, CreateResult, Duplicate, Record
from core.ports import TableStorePort
from core.similarity import find_similar

LOGGER = logging.getLogger(__name__)

RecordId = Union[int, str]


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision we persist."""

    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _coerce_id(record_id: RecordId) -> Optional[int]:
    if isinstance(record_id, bool):
        return None
    if isinstance(record_id, int):
        return record_id
    text = str(record_id).strip()
    # Plain ASCII digits only: int() would also take "1_0" or non-Latin digits.
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


class RecordRepository:
    """Orchestrates similarity checks, id allocation and persistence for one table."""

    def __init__(
        self,
        store: TableStorePort,
        dedup_config: Optional[DedupConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._schema = store.schema
        self._dedup = dedup_config or DedupConfig()
        self._clock = clock

    @property
    def kind(self) -> str:
        return self._schema.name

    def create(
        self,
        user_id: str,
        username: str,
        primary_text: str,
        secondary_text: str,
    ) -> CreateResult:
        """Store a new record unless a similar one already exists."""

        with self._store.locked():
            records = self._store.load()

            similar = find_similar(
                records,
                primary_text,
                field=attrgetter("primary_text"),
                threshold=self._dedup.similarity_threshold,
            )
            if similar:
                LOGGER.info(
                    "Duplicate %s submission from %s matches %s",
                    self.kind,
                    user_id,
                    [record.id for record in similar],
                )
                return Duplicate(similar_entries=tuple(similar))

            record = Record(
                id=self._store.next_id(records),
                user_id=user_id,
                username=username,
                primary_text=primary_text,
                secondary_text=secondary_text,
                created_at=self._clock(),
                status=self._schema.default_status,
                upvotes=0,
            )
            records.append(record)
            self._store.save(records)

        LOGGER.info("Created %s #%s for %s", self.kind, record.id, user_id)
        return Created(id=record.id)

    def list_all(self) -> List[Record]:
        """Return every record in storage order (oldest first)."""

        with self._store.locked():
            return self._store.load()

    def get(self, record_id: RecordId) -> Optional[Record]:
        """Look up a single record by identifier."""

        target = _coerce_id(record_id)
        if target is None:
            return None
        for record in self.list_all():
            if record.id == target:
                return record
        return None

    def upvote(self, record_id: RecordId) -> bool:
        """Add one upvote to the record; False when no record has that id."""

        target = _coerce_id(record_id)
        if target is None:
            LOGGER.info("Upvote ignored for %s: invalid id %r", self.kind, record_id)
            return False

        with self._store.locked():
            records = self._store.load()
            for index, record in enumerate(records):
                if record.id == target:
                    records[index] = dataclasses.replace(record, upvotes=record.upvotes + 1)
                    self._store.save(records)
                    break
            else:
                LOGGER.info("Upvote ignored for %s: #%s not found", self.kind, target)
                return False

        LOGGER.info("Upvoted %s #%s (now %s)", self.kind, target, records[index].upvotes)
        return True
