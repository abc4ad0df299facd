import pytest
from sqlalchemy import create_engine, text

from jot.db import open_store
from jot.errors import SchemaTooNewError
from jot.schema import LATEST_VERSION, SCHEMA_V1, get_schema_version, migrate, set_schema_version
from jot.services import get_note, search_notes
from jot.models import SearchQuery


def _columns(engine, table):
    with engine.connect() as conn:
        return {row[1] for row in conn.exec_driver_sql(f"PRAGMA table_info({table})")}


def _indexes(engine):
    with engine.connect() as conn:
        return {row[1] for row in conn.exec_driver_sql("PRAGMA index_list(notes)")}


def test_fresh_store_is_at_latest_version(tmp_path):
    store = open_store(tmp_path / "fresh.db")
    assert store.schema_version == LATEST_VERSION == 2

    with store.engine.connect() as conn:
        assert get_schema_version(conn) == LATEST_VERSION
    assert _columns(store.engine, "notes") == {
        "id", "content", "tags", "subject_date", "created_at", "updated_at", "deleted_at",
    }
    assert _columns(store.engine, "sync_state") == {"key", "value"}
    assert {"idx_updated_at", "idx_deleted_at", "idx_subject_date", "idx_created_at"} <= _indexes(store.engine)
    store.close()


def test_reopening_does_not_migrate_again(tmp_path):
    path = tmp_path / "again.db"
    open_store(path).close()
    store = open_store(path)
    assert store.schema_version == LATEST_VERSION
    store.close()


def test_version_one_store_is_upgraded_in_place(tmp_path):
    path = tmp_path / "v1.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        for stmt in SCHEMA_V1:
            conn.execute(text(stmt))
        set_schema_version(conn, 1)
        conn.execute(text(
            "INSERT INTO notes (id, content, tags, date, created_at, updated_at) "
            "VALUES ('OLD', 'legacy', '[\"misc\"]', '2024-05-06', 10, 10)"
        ))
    engine.dispose()

    store = open_store(path)
    assert store.schema_version == 2
    note = get_note(store, "OLD")
    assert note.subject_date == "2024-05-06"
    assert note.tags == ["misc"]
    assert [n.id for n in search_notes(store, SearchQuery(date_from="2024-05-06"))] == ["OLD"]
    assert "idx_date" not in _indexes(store.engine)
    store.close()


def test_too_new_store_is_refused(tmp_path):
    path = tmp_path / "future.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        set_schema_version(conn, LATEST_VERSION + 1)

    with pytest.raises(SchemaTooNewError) as exc:
        migrate(engine)
    assert exc.value.found == LATEST_VERSION + 1
    engine.dispose()

    with pytest.raises(SchemaTooNewError):
        open_store(path)
