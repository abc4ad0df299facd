# jot/app.py
from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Response

from .config import get_settings
from .db import open_store
from .errors import JotError
from .models import SyncRequest, SyncResponse
from .sync import process_sync_request

logger = logging.getLogger(__name__)

USER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def user_db_path(data_dir: Path, user: str) -> Path:
    return data_dir / "users" / f"{user}.db"


def create_app(data_dir: Optional[Path] = None) -> FastAPI:
    app = FastAPI(title="jot sync server")
    app.state.data_dir = Path(data_dir) if data_dir is not None else get_settings().data_dir

    # ---------- API ----------
    @app.get("/health/ping")
    def ping():
        return Response(status_code=200)

    @app.post("/sync", response_model=SyncResponse)
    def sync_notes(request: SyncRequest, x_jot_user: Optional[str] = Header(None)):
        # authentication happens in front of this service; we only get the identity
        if not x_jot_user:
            raise HTTPException(status_code=401, detail="Missing user identity")
        if not USER_ID_RE.match(x_jot_user):
            raise HTTPException(status_code=400, detail="Invalid user identity")

        path = user_db_path(app.state.data_dir, x_jot_user)
        try:
            with open_store(path) as store:
                response = process_sync_request(store, request)
        except JotError as e:
            logger.exception("Sync failed for user %s", x_jot_user)
            raise HTTPException(status_code=500, detail=str(e)) from e

        logger.info(
            "Synced user %s: received %d, returned %d",
            x_jot_user, len(request.notes), len(response.notes),
        )
        return response

    return app


app = create_app()
