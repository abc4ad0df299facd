from __future__ import annotations
from datetime import UTC, datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlmodel import select
from ulid import ULID

from .db import Store
from .errors import AmbiguousIdError, NoteNotFoundError
from .models import Note, SearchQuery, SyncState

LAST_SYNC_KEY = "last_sync"


def now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


def _next_timestamp(note: Note) -> int:
    # never move updated_at backwards, even behind a synced copy from a faster clock
    return max(now_ms(), note.updated_at + 1)


def _loaded(note: Optional[Note]) -> Optional[Note]:
    """Decode the tag list so corruption surfaces on read, not later."""
    if note is not None:
        note.tags  # raises CorruptRecordError
    return note


def create_note(
    store: Store,
    content: str,
    tags: Optional[Iterable[str]] = None,
    date: Optional[str] = None,
) -> Note:
    now = now_ms()
    note = Note(
        id=str(ULID()), content=content, subject_date=date,
        created_at=now, updated_at=now, deleted_at=None,
    )
    note.set_tags(tags)
    with store.session_scope("create note") as s:
        s.add(note)
        s.flush()
    return note


def get_note(store: Store, note_id: str) -> Optional[Note]:
    """Exact id lookup. Prefixes are handled by ``resolve_note``."""
    with store.session_scope("read note") as s:
        return _loaded(s.get(Note, note_id))


def resolve_note(store: Store, identifier: str) -> Note:
    """Find a note by exact id, falling back to a unique prefix of an active note."""
    note = get_note(store, identifier)
    if note is not None:
        return note

    matches = [n for n in search_notes(store, SearchQuery()) if n.id.startswith(identifier)]
    if not matches:
        raise NoteNotFoundError(identifier)
    if len(matches) > 1:
        raise AmbiguousIdError(identifier, len(matches))
    return matches[0]


def update_note(
    store: Store,
    note_id: str,
    content: str,
    tags: Optional[Iterable[str]] = None,
    date: Optional[str] = None,
) -> None:
    """Replace content, tags and date. Unknown ids are ignored."""
    with store.session_scope("update note") as s:
        note = s.get(Note, note_id)
        if not note:
            return
        note.content = content
        note.set_tags(tags)
        note.subject_date = date
        note.updated_at = _next_timestamp(note)
        s.add(note)


def soft_delete_note(store: Store, note_id: str) -> None:
    """Tombstone a note. Repeating it refreshes the timestamps; unknown ids are ignored."""
    with store.session_scope("delete note") as s:
        note = s.get(Note, note_id)
        if not note:
            return
        now = _next_timestamp(note)
        note.deleted_at = now
        note.updated_at = now
        s.add(note)


def notes_since(store: Store, timestamp: int) -> list[Note]:
    """Every note, tombstones included, touched after ``timestamp``, oldest first."""
    with store.session_scope("list notes since") as s:
        stmt = (
            select(Note)
            .where(Note.updated_at > timestamp)
            .order_by(Note.updated_at.asc(), Note.id.asc())
        )
        return [_loaded(n) for n in s.exec(stmt)]


def upsert_note(store: Store, incoming: Note) -> bool:
    """Insert ``incoming`` or overwrite the stored copy if ``incoming`` is strictly newer.

    Returns True when something was written. Ties keep the stored copy.
    """
    with store.session_scope("upsert note") as s:
        existing = s.get(Note, incoming.id)
        if existing is None:
            note = Note(id=incoming.id, created_at=incoming.created_at, updated_at=incoming.updated_at)
            note.copy_from(incoming)
            s.add(note)
            return True
        if incoming.updated_at > existing.updated_at:
            existing.copy_from(incoming)
            s.add(existing)
            return True
        return False


def search_notes(store: Store, query: SearchQuery) -> list[Note]:
    """
    Return notes matching every filter in ``query``, most recently touched first.
    - text: case-sensitive substring of content
    - tags: each must be an exact member of the note's tags
    - date_from/date_to: inclusive bounds on subject_date
    - include_deleted: include tombstones
    - limit: cap applied after ordering
    """
    with store.session_scope("search notes") as s:
        stmt = select(Note)
        if not query.include_deleted:
            stmt = stmt.where(Note.deleted_at == None)  # noqa: E711
        if query.text:
            stmt = stmt.where(func.instr(Note.content, query.text) > 0)
        if query.date_from:
            stmt = stmt.where(Note.subject_date >= query.date_from)
        if query.date_to:
            stmt = stmt.where(Note.subject_date <= query.date_to)
        stmt = stmt.order_by(Note.updated_at.desc(), Note.id.desc())

        # tags are matched on the decoded set, so the cap has to wait for that
        if query.limit is not None and not query.tags:
            stmt = stmt.limit(query.limit)

        notes = [_loaded(n) for n in s.exec(stmt)]

    if query.tags:
        wanted = set(query.tags)
        notes = [n for n in notes if wanted.issubset(n.tags)]
        if query.limit is not None:
            notes = notes[: query.limit]
    return notes


# ---------- Sync state ----------
def get_sync_state(store: Store, key: str) -> Optional[str]:
    with store.session_scope("read sync state") as s:
        row = s.get(SyncState, key)
        return row.value if row else None


def set_sync_state(store: Store, key: str, value: str) -> None:
    with store.session_scope("write sync state") as s:
        s.merge(SyncState(key=key, value=value))


def get_last_sync(store: Store) -> int:
    value = get_sync_state(store, LAST_SYNC_KEY)
    try:
        return int(value) if value is not None else 0
    except ValueError:
        return 0


def set_last_sync(store: Store, timestamp: int) -> None:
    set_sync_state(store, LAST_SYNC_KEY, str(timestamp))
