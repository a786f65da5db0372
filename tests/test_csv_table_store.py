from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from adapters.csv_table_store import CSVTableStore, format_timestamp, parse_timestamp
from core.models import BUGS, FEATURES, Record
from core.ports import StorageError

BUG_HEADER = "id,user_id,username,description,steps,created_at,status,upvotes\n"


def _record(record_id: int, description: str = "crash on save", steps: str = "open menu") -> Record:
    return Record(
        id=record_id,
        user_id="u1",
        username="alice",
        primary_text=description,
        secondary_text=steps,
        created_at=datetime(2024, 5, 17, 9, 30, 12, 345000, tzinfo=timezone.utc),
        status="open",
        upvotes=0,
    )


def test_load_initializes_missing_file_with_header(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "bugs.csv"
    store = CSVTableStore(path, BUGS)

    assert store.load() == []
    assert path.read_text(encoding="utf-8") == BUG_HEADER


def test_feature_table_uses_feature_columns(tmp_path: Path) -> None:
    path = tmp_path / "features.csv"
    CSVTableStore(path, FEATURES).load()
    assert path.read_text(encoding="utf-8").startswith(
        "id,user_id,username,feature,reason,created_at,status,upvotes"
    )


def test_next_id() -> None:
    store = CSVTableStore("unused.csv", BUGS)
    assert store.next_id([]) == 1
    assert store.next_id([_record(1), _record(3), _record(4)]) == 5


def test_save_then_load_preserves_fields(tmp_path: Path) -> None:
    store = CSVTableStore(tmp_path / "bugs.csv", BUGS)
    records = [
        _record(1, description='crash, then "freeze"', steps="step one\nstep two"),
        _record(2, description="plain text; with semicolon"),
    ]

    store.save(records)

    assert store.load() == records


def test_save_of_load_is_byte_stable(tmp_path: Path) -> None:
    path = tmp_path / "bugs.csv"
    path.write_text(
        BUG_HEADER
        + "1,u1,alice,crash on save,open save menu,2024-01-02T03:04:05.678Z,open,3\n"
        + '2,u2,bob,"comma, inside",steps,2024-01-03T00:00:00.000Z,closed,0\n',
        encoding="utf-8",
    )
    before = path.read_bytes()
    store = CSVTableStore(path, BUGS)

    store.save(store.load())

    assert path.read_bytes() == before


def test_blank_lines_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "bugs.csv"
    path.write_text(
        BUG_HEADER + "\n1,u1,alice,crash,steps,2024-01-02T03:04:05.678Z,open,0\n\n",
        encoding="utf-8",
    )
    records = CSVTableStore(path, BUGS).load()
    assert [record.id for record in records] == [1]


def test_empty_upvotes_cell_reads_as_zero(tmp_path: Path) -> None:
    path = tmp_path / "bugs.csv"
    path.write_text(BUG_HEADER + "1,u1,alice,crash,steps,2024-01-02T03:04:05.678Z,open,\n", encoding="utf-8")
    assert CSVTableStore(path, BUGS).load()[0].upvotes == 0


@pytest.mark.parametrize(
    "content",
    [
        "",
        "id,user_id,username,feature,reason,created_at,status,upvotes\n",
        BUG_HEADER + "1,u1,alice,crash,2024-01-02T03:04:05.678Z,open,0\n",
        BUG_HEADER + "one,u1,alice,crash,steps,2024-01-02T03:04:05.678Z,open,0\n",
        BUG_HEADER + "1,u1,alice,crash,steps,yesterday,open,0\n",
        BUG_HEADER + "1,u1,alice,crash,steps,2024-01-02T03:04:05.678Z,open,-2\n",
    ],
    ids=["empty", "wrong-header", "short-row", "bad-id", "bad-date", "negative-upvotes"],
)
def test_unparseable_content_raises_storage_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bugs.csv"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(StorageError):
        CSVTableStore(path, BUGS).load()


def test_semicolon_rows_from_older_files_load_verbatim(tmp_path: Path) -> None:
    path = tmp_path / "bugs.csv"
    path.write_text(
        BUG_HEADER + "1,u1,alice,crash; then freeze,open; save,2024-01-02T03:04:05.678Z,open,0\n",
        encoding="utf-8",
    )
    record = CSVTableStore(path, BUGS).load()[0]
    assert record.primary_text == "crash; then freeze"
    assert record.secondary_text == "open; save"


def test_invalid_utf8_raises_storage_error(tmp_path: Path) -> None:
    path = tmp_path / "bugs.csv"
    path.write_bytes(
        BUG_HEADER.encode("utf-8")
        + "1,u1,alice,café crash,steps,2024-01-02T03:04:05.678Z,open,0\n".encode("latin-1")
    )
    with pytest.raises(StorageError):
        CSVTableStore(path, BUGS).load()


def test_fields_beyond_default_csv_limit_round_trip(tmp_path: Path) -> None:
    store = CSVTableStore(tmp_path / "bugs.csv", BUGS)
    long_text = "x" * 200_000

    store.save([_record(1, description=long_text)])

    assert store.load()[0].primary_text == long_text


def test_unencodable_text_raises_and_leaves_no_temp_file(tmp_path: Path) -> None:
    path = tmp_path / "bugs.csv"
    store = CSVTableStore(path, BUGS)
    store.save([_record(1)])
    before = path.read_bytes()

    with pytest.raises(StorageError):
        store.save([_record(1), _record(2, description="bad \ud800 text")])

    assert path.read_bytes() == before
    assert sorted(p.name for p in tmp_path.iterdir()) == ["bugs.csv"]


def test_failed_save_keeps_previous_snapshot(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "bugs.csv"
    store = CSVTableStore(path, BUGS)
    store.save([_record(1)])
    before = path.read_bytes()

    def _fail_replace(src: str, dst: str) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", _fail_replace)

    with pytest.raises(StorageError):
        store.save([_record(1), _record(2)])

    assert path.read_bytes() == before
    assert sorted(p.name for p in tmp_path.iterdir()) == ["bugs.csv"]


def test_stores_on_same_path_share_a_lock(tmp_path: Path) -> None:
    first = CSVTableStore(tmp_path / "bugs.csv", BUGS)
    second = CSVTableStore(tmp_path / "bugs.csv", BUGS)
    other = CSVTableStore(tmp_path / "features.csv", FEATURES)

    assert first._lock is second._lock
    assert first._lock is not other._lock


def test_timestamp_format_round_trips() -> None:
    value = datetime(2024, 5, 17, 9, 30, 12, 345000, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2024-05-17T09:30:12.345Z"
    assert parse_timestamp("2024-05-17T09:30:12.345Z") == value
