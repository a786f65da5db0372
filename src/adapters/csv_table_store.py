"""CSV table store adapter.

Implements the core TableStorePort using one flat CSV file per record kind.
"""

from __future__ import annotations

import contextlib
import csv
import io
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Sequence, Union

from core.models import Record, TableSchema
from core.ports import StorageError

LOGGER = logging.getLogger(__name__)

# One lock per resolved file path, so separate store objects pointing at the
# same table still serialize their load-mutate-save cycles.
_TABLE_LOCKS: dict[str, threading.RLock] = {}
_TABLE_LOCKS_GUARD = threading.Lock()

# csv.reader rejects fields over 128 KiB by default while csv.writer has no
# limit; lift it so any text we write can be read back.
csv.field_size_limit(2**31 - 1)


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _TABLE_LOCKS_GUARD:
        lock = _TABLE_LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _TABLE_LOCKS[key] = lock
        return lock


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(raw: str) -> datetime:
    """Parse the persisted timestamp format back into an aware datetime."""

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CSVTableStore:
    """Full-snapshot CSV persistence for one table."""

    def __init__(self, path: Union[str, Path], schema: TableSchema) -> None:
        self._path = Path(path)
        self.schema = schema
        self._lock = _lock_for(self._path)

    @property
    def path(self) -> Path:
        return self._path

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the table lock for a whole load-mutate-save cycle."""

        with self._lock:
            yield

    def init_table(self) -> None:
        """Create the file with only the header row if it does not exist."""

        with self._lock:
            if self._path.exists():
                return
            LOGGER.info("Initializing %s table at %s", self.schema.name, self._path)
            self._write_rows([])

    def load(self) -> List[Record]:
        """Read and parse every row of the table."""

        with self._lock:
            self.init_table()
            try:
                with self._path.open("r", encoding="utf-8", newline="") as handle:
                    rows = list(csv.reader(handle))
            except (OSError, UnicodeDecodeError, csv.Error) as exc:
                LOGGER.exception("Failed to read %s table at %s", self.schema.name, self._path)
                raise StorageError(f"Cannot read {self._path}: {exc}") from exc

        numbered = [(line_no, row) for line_no, row in enumerate(rows, start=1) if row]
        if not numbered or tuple(numbered[0][1]) != self.schema.columns:
            raise StorageError(
                f"{self._path} has an invalid header; expected {','.join(self.schema.columns)}"
            )
        return [self._parse_row(line_no, row) for line_no, row in numbered[1:]]

    def save(self, records: Sequence[Record]) -> None:
        """Replace the table file with a snapshot of ``records``."""

        with self._lock:
            self._write_rows([self._format_row(record) for record in records])
        LOGGER.debug("Saved %s %s rows to %s", len(records), self.schema.name, self._path)

    def next_id(self, records: Sequence[Record]) -> int:
        """Return 1 for an empty table, otherwise one past the highest id."""

        if not records:
            return 1
        return max(record.id for record in records) + 1

    def _parse_row(self, line_no: int, row: List[str]) -> Record:
        if len(row) != len(self.schema.columns):
            raise StorageError(
                f"{self._path}:{line_no} has {len(row)} columns, expected {len(self.schema.columns)}"
            )
        (raw_id, user_id, username, primary, secondary, created_at, status, raw_upvotes) = row
        try:
            record_id = int(raw_id)
            upvotes = int(raw_upvotes) if raw_upvotes.strip() else 0
            timestamp = parse_timestamp(created_at)
        except ValueError as exc:
            raise StorageError(f"{self._path}:{line_no} is malformed: {exc}") from exc
        if record_id < 1 or upvotes < 0:
            raise StorageError(f"{self._path}:{line_no} has an out-of-range id or upvote count")
        return Record(
            id=record_id,
            user_id=user_id,
            username=username,
            primary_text=primary,
            secondary_text=secondary,
            created_at=timestamp,
            status=status,
            upvotes=upvotes,
        )

    def _format_row(self, record: Record) -> List[str]:
        return [
            str(record.id),
            record.user_id,
            record.username,
            record.primary_text,
            record.secondary_text,
            format_timestamp(record.created_at),
            record.status,
            str(record.upvotes),
        ]

    def _write_rows(self, rows: List[List[str]]) -> None:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.schema.columns)
        writer.writerows(rows)

        # Write a sibling temp file and swap it in, so readers only ever see
        # the previous snapshot or the new one.
        tmp_name = None
        replaced = False
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(buffer.getvalue())
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            replaced = True
        except (OSError, UnicodeError) as exc:
            LOGGER.exception("Failed to write %s table at %s", self.schema.name, self._path)
            raise StorageError(f"Cannot write {self._path}: {exc}") from exc
        finally:
            if not replaced and tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
