"""Environment-driven settings for the CLI, the sync client and the server."""
from __future__ import annotations
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field


def _default_db_path() -> Path:
    env_path = os.getenv("JOT_DB_PATH")
    if env_path:
        return Path(env_path)
    return Path.home() / ".jot" / "notes.db"


class Settings(BaseModel):
    # local note store used by the CLI
    db_path: Path = Field(default_factory=_default_db_path)
    # sync endpoint and the identity sent to it
    server_url: str = Field(default_factory=lambda: os.getenv("JOT_SERVER_URL", "http://127.0.0.1:8000"))
    user: str = Field(default_factory=lambda: os.getenv("JOT_USER", "default"))
    # server side: per-user stores live under <data_dir>/users/
    data_dir: Path = Field(default_factory=lambda: Path(os.getenv("JOT_DATA_DIR", "./data")))
    log_level: str = Field(default_factory=lambda: os.getenv("JOT_LOG_LEVEL", "WARNING"))


def get_settings() -> Settings:
    # read the environment on every call so tests can monkeypatch it
    return Settings()


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
