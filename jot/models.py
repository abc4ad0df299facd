from __future__ import annotations
import json
from typing import Iterable, Optional

import pydantic
from pydantic import BaseModel
from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from .errors import CorruptRecordError

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def normalize_tags(tags: Optional[Iterable[str]]) -> list[str]:
    if not tags:
        return []
    return sorted({t.strip() for t in tags if t and t.strip()})


class Note(SQLModel, table=True):
    __tablename__ = "notes"

    id: str = Field(primary_key=True)
    content: str = ""
    # JSON array of strings, column is named "tags" on disk
    tags_json: str = Field(default="[]", sa_column=Column("tags", Text, nullable=False))
    subject_date: Optional[str] = None

    # epoch milliseconds
    created_at: int
    updated_at: int
    deleted_at: Optional[int] = None

    @property
    def tags(self) -> list[str]:
        try:
            value = json.loads(self.tags_json)
        except (TypeError, ValueError) as e:
            raise CorruptRecordError(self.id, f"invalid JSON ({e})") from e
        if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
            raise CorruptRecordError(self.id, "expected a list of strings")
        return value

    def set_tags(self, tags: Optional[Iterable[str]]) -> None:
        self.tags_json = json.dumps(normalize_tags(tags))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def copy_from(self, other: "Note") -> None:
        """Overwrite every column except the id with the values of ``other``."""
        self.content = other.content
        self.tags_json = other.tags_json
        self.subject_date = other.subject_date
        self.created_at = other.created_at
        self.updated_at = other.updated_at
        self.deleted_at = other.deleted_at

    def to_record(self) -> "NoteRecord":
        return NoteRecord(
            id=self.id, content=self.content, tags=self.tags, date=self.subject_date,
            created_at=self.created_at, updated_at=self.updated_at, deleted_at=self.deleted_at,
        )

    @classmethod
    def from_record(cls, record: "NoteRecord") -> "Note":
        note = cls(
            id=record.id, content=record.content, subject_date=record.date,
            created_at=record.created_at, updated_at=record.updated_at,
            deleted_at=record.deleted_at,
        )
        note.set_tags(record.tags)
        return note


class SyncState(SQLModel, table=True):
    __tablename__ = "sync_state"

    key: str = Field(primary_key=True)
    value: str


class SearchQuery(BaseModel):
    text: Optional[str] = None
    # a note must carry every one of these
    tags: list[str] = pydantic.Field(default_factory=list)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    include_deleted: bool = False
    limit: Optional[int] = None


# ---------- Wire schemas ----------
class NoteRecord(BaseModel):
    id: str
    content: str
    tags: list[str] = pydantic.Field(default_factory=list)
    date: Optional[str] = pydantic.Field(default=None, pattern=ISO_DATE_PATTERN)
    created_at: int
    updated_at: int
    deleted_at: Optional[int] = None


class SyncRequest(BaseModel):
    notes: list[NoteRecord] = pydantic.Field(default_factory=list)
    last_sync: int = 0


class SyncResponse(BaseModel):
    notes: list[NoteRecord] = pydantic.Field(default_factory=list)
