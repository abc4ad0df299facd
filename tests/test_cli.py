from typer.testing import CliRunner

from jot.cli import app
from jot.db import open_store
from jot.models import SearchQuery
from jot.services import search_notes

runner = CliRunner()


def _run(db, *args):
    return runner.invoke(app, ["--db", str(db), *args])


def test_add_search_delete(tmp_path):
    db = tmp_path / "cli.db"

    r = _run(db, "add", "Buy", "milk", "--tag", "errand", "--date", "2025-01-01")
    assert r.exit_code == 0, r.output
    assert "Note added" in r.output
    r = _run(db, "add", "Write", "report")
    assert r.exit_code == 0, r.output

    r = _run(db, "search", "--tag", "errand", "--json")
    assert r.exit_code == 0, r.output
    assert "Buy milk" in r.output
    assert "Write report" not in r.output

    with open_store(db) as store:
        report = search_notes(store, SearchQuery(text="report"))[0]

    r = _run(db, "delete", report.id)
    assert r.exit_code == 0, r.output

    r = _run(db, "search", "--json")
    assert "Write report" not in r.output
    r = _run(db, "search", "--deleted", "--json")
    assert "Write report" in r.output


def test_edit_keeps_unspecified_fields(tmp_path):
    db = tmp_path / "cli.db"
    _run(db, "add", "draft", "--tag", "temp", "--date", "2025-02-02")
    with open_store(db) as store:
        note = search_notes(store, SearchQuery())[0]

    r = _run(db, "edit", note.id, "--content", "final")
    assert r.exit_code == 0, r.output

    with open_store(db) as store:
        edited = search_notes(store, SearchQuery())[0]
    assert edited.content == "final"
    assert edited.tags == ["temp"]
    assert edited.subject_date == "2025-02-02"


def test_unknown_id_and_bad_date(tmp_path):
    db = tmp_path / "cli.db"

    r = _run(db, "show", "nothing-here")
    assert r.exit_code == 1
    assert "not found" in r.output

    r = _run(db, "add", "x", "--date", "last week")
    assert r.exit_code != 0


def test_export_includes_tombstones(tmp_path):
    db = tmp_path / "cli.db"
    out = tmp_path / "notes.json"
    _run(db, "add", "keep")
    _run(db, "add", "drop")
    with open_store(db) as store:
        drop = search_notes(store, SearchQuery(text="drop"))[0]
    _run(db, "delete", drop.id)

    r = _run(db, "export", "--to", str(out))
    assert r.exit_code == 0, r.output
    text = out.read_text(encoding="utf-8")
    assert '"keep"' in text and '"drop"' in text


def test_comma_separated_tags_and_down_alias(tmp_path):
    db = tmp_path / "cli.db"

    r = _run(db, "down", "Pick", "up", "parcel", "--tag", "errand,post", "--tag", "today")
    assert r.exit_code == 0, r.output

    with open_store(db) as store:
        note = search_notes(store, SearchQuery())[0]
    assert note.tags == ["errand", "post", "today"]

    r = _run(db, "search", "--tag", "errand,post", "--json")
    assert "Pick up parcel" in r.output


def test_edit_can_clear_tags(tmp_path):
    db = tmp_path / "cli.db"
    _run(db, "add", "tagged", "--tag", "a,b")
    with open_store(db) as store:
        note = search_notes(store, SearchQuery())[0]

    r = _run(db, "edit", note.id, "--clear-tags")
    assert r.exit_code == 0, r.output

    with open_store(db) as store:
        assert search_notes(store, SearchQuery())[0].tags == []
