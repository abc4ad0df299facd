"""Client half of a sync round: push local changes, pull what the server has."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .db import Store
from .errors import SyncTransportError
from .models import Note, SyncRequest, SyncResponse
from .services import get_last_sync, notes_since, set_last_sync, upsert_note

logger = logging.getLogger(__name__)

USER_HEADER = "X-Jot-User"


@dataclass
class SyncResult:
    sent: int
    received: int
    last_sync: int


class SyncClient:
    """Talks to the ``POST /sync`` endpoint of a jot server."""

    def __init__(self, base_url: str, user: str, http: Optional[httpx.Client] = None, timeout: float = 30.0):
        self.user = user
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def push(self, request: SyncRequest) -> SyncResponse:
        try:
            response = self.http.post(
                "/sync",
                json=request.model_dump(),
                headers={USER_HEADER: self.user},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SyncTransportError(
                f"Sync rejected by server ({e.response.status_code}): {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise SyncTransportError(f"Could not reach sync server: {e}") from e
        return SyncResponse.model_validate(response.json())

    def sync(self, store: Store) -> SyncResult:
        last_sync = get_last_sync(store)
        outgoing = notes_since(store, last_sync)
        logger.info("Sending %d note(s) changed since %d", len(outgoing), last_sync)

        response = self.push(SyncRequest(notes=[n.to_record() for n in outgoing], last_sync=last_sync))

        incoming = [Note.from_record(r) for r in response.notes]
        watermark = max([last_sync] + [n.updated_at for n in outgoing] + [n.updated_at for n in incoming])
        with store.transaction("apply sync response"):
            for note in incoming:
                upsert_note(store, note)
            set_last_sync(store, watermark)

        logger.info("Received %d note(s); watermark now %d", len(incoming), watermark)
        return SyncResult(sent=len(outgoing), received=len(incoming), last_sync=watermark)

    def close(self) -> None:
        self.http.close()
