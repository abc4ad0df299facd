"""Errors raised by the note store and the sync engine."""
from __future__ import annotations


class JotError(Exception):
    """Base class for every error the store raises on purpose."""


class NoteNotFoundError(JotError):
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Note '{identifier}' not found")


class AmbiguousIdError(JotError):
    """A prefix matched several notes; the caller should ask for more characters."""

    def __init__(self, prefix: str, matches: int):
        self.prefix = prefix
        self.matches = matches
        super().__init__(
            f"Ambiguous ID '{prefix}': matches {matches} notes. Please provide more characters."
        )


class CorruptRecordError(JotError):
    """A persisted tag list could not be decoded."""

    def __init__(self, note_id: str, reason: str):
        self.note_id = note_id
        self.reason = reason
        super().__init__(f"Corrupt tags on note '{note_id}': {reason}")


class SchemaTooNewError(JotError):
    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Store schema version ({found}) is newer than supported ({supported}). Refusing to open."
        )


class StorageError(JotError):
    """Unexpected failure of the underlying database, chained to its cause."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        super().__init__(f"Storage failure during '{operation}': {cause}")


class SyncTransportError(JotError):
    """The sync server could not be reached or answered with an error."""
