"""Shared fixtures for the note store tests."""
from typing import Iterable, Optional

import pytest

from jot.db import open_store
from jot.models import Note


@pytest.fixture
def store(tmp_path):
    s = open_store(tmp_path / "notes.db")
    yield s
    s.close()


def make_note(
    note_id: str,
    updated_at: int,
    content: str = "",
    tags: Iterable[str] = (),
    date: Optional[str] = None,
    created_at: int = 1,
    deleted_at: Optional[int] = None,
) -> Note:
    note = Note(
        id=note_id, content=content, subject_date=date,
        created_at=created_at, updated_at=updated_at, deleted_at=deleted_at,
    )
    note.set_tags(tags)
    return note
