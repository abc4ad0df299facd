"""Server-side reconciliation of a client's note batch.

Conflicts are resolved last-write-wins on ``updated_at``. The server keeps no
per-client watermark: each round trusts the ``last_sync`` the client sends.
"""
from __future__ import annotations
from typing import Iterable

from .db import Store
from .models import Note, SyncRequest, SyncResponse
from .services import get_note, notes_since, upsert_note


def merge_notes(store: Store, client_notes: Iterable[Note], client_last_sync: int) -> list[Note]:
    """Apply ``client_notes`` to ``store`` and return the notes the client is missing.

    The returned list holds, in order, the server copies that beat a submitted
    note, then every other server note touched after ``client_last_sync``.
    """
    to_send: dict[str, Note] = {}
    seen_ids: set[str] = set()

    with store.transaction("merge notes"):
        for client_note in client_notes:
            seen_ids.add(client_note.id)
            server_note = get_note(store, client_note.id)

            if server_note is None:
                upsert_note(store, client_note)
            elif client_note.updated_at > server_note.updated_at:
                upsert_note(store, client_note)
            elif server_note.updated_at > client_note.updated_at:
                to_send[server_note.id] = server_note
            # equal timestamps: already converged

        for note in notes_since(store, client_last_sync):
            if note.id not in seen_ids and note.id not in to_send:
                to_send[note.id] = note

    return list(to_send.values())


def process_sync_request(store: Store, request: SyncRequest) -> SyncResponse:
    client_notes = [Note.from_record(r) for r in request.notes]
    notes = merge_notes(store, client_notes, request.last_sync)
    return SyncResponse(notes=[n.to_record() for n in notes])
