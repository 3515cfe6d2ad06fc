from __future__ import annotations

import json

import pytest

from audiolab.storage.records import RecordStoreError, ScriptRecord, SqliteScriptStore


def _fields(key: str, name: str = "Episode") -> dict[str, str]:
    return {"name": name, "r2_file_link": key, "personas": json.dumps(["Ana", "Ben"])}


def test_insert_returning_materializes_row(record_store: SqliteScriptStore) -> None:
    record = record_store.insert_returning(_fields("generated/a.ssml"))

    assert isinstance(record, ScriptRecord)
    assert record.id == 1
    assert record.name == "Episode"
    assert record.r2_file_link == "generated/a.ssml"
    assert record.created_at
    assert record.persona_list() == ["Ana", "Ben"]


def test_ids_increase(record_store: SqliteScriptStore) -> None:
    first = record_store.insert_returning(_fields("a"))
    second = record_store.insert_returning(_fields("b"))

    assert second.id > first.id
    assert [r.id for r in record_store.list_scripts()] == [first.id, second.id]


def test_duplicate_key_rejected(record_store: SqliteScriptStore) -> None:
    record_store.insert_returning(_fields("a"))

    with pytest.raises(RecordStoreError, match="Failed to insert"):
        record_store.insert_returning(_fields("a", name="Other"))

    assert record_store.count() == 1


def test_missing_fields_rejected(record_store: SqliteScriptStore) -> None:
    with pytest.raises(RecordStoreError, match="personas"):
        record_store.insert_returning({"name": "x", "r2_file_link": "k"})


def test_to_dict_matches_api_shape(record_store: SqliteScriptStore) -> None:
    record = record_store.insert_returning(_fields("a"))

    assert set(record.to_dict()) == {"id", "name", "r2_file_link", "created_at", "personas"}


def test_persona_list_handles_null() -> None:
    record = ScriptRecord(id=1, name="n", r2_file_link="k", created_at="now", personas=None)
    assert record.persona_list() == []


def test_insert_after_close_raises(tmp_path) -> None:
    store = SqliteScriptStore(str(tmp_path / "closed.db"))
    store.close()
    store.close()

    with pytest.raises(RecordStoreError, match="closed"):
        store.insert_returning(_fields("a"))


@pytest.mark.parametrize("method", ["list_scripts", "count"])
def test_reads_after_close_raise_record_store_error(tmp_path, method: str) -> None:
    store = SqliteScriptStore(str(tmp_path / "closed.db"))
    store.close()

    with pytest.raises(RecordStoreError, match="closed"):
        getattr(store, method)()


def test_read_errors_are_wrapped(record_store: SqliteScriptStore) -> None:
    record_store._conn.execute("DROP TABLE scripts")

    with pytest.raises(RecordStoreError, match="Failed to count"):
        record_store.count()
    with pytest.raises(RecordStoreError, match="Failed to list"):
        record_store.list_scripts()


def test_wal_mode(tmp_path) -> None:
    store = SqliteScriptStore(str(tmp_path / "wal.db"), wal=True)
    assert store._conn.execute("PRAGMA journal_mode").fetchone()[0].upper() == "WAL"
    store.close()
