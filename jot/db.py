from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, create_engine

from .errors import StorageError
from .schema import migrate


class Store:
    """Handle on one physical note store file.

    Every store operation takes a ``Store``; there is no module-level engine.
    """

    def __init__(self, path: Path, engine):
        self.path = path
        self.engine = engine
        self.schema_version = 0
        self._session: Optional[Session] = None

    @contextmanager
    def session_scope(self, operation: str) -> Iterator[Session]:
        # inner scopes join the outer session; the outermost one commits
        if self._session is not None:
            yield self._session
            return

        # keep objects alive after commit so returned models retain values
        session = Session(self.engine, expire_on_commit=False)
        self._session = session
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(operation, e) from e
        except Exception:
            session.rollback()
            raise
        finally:
            self._session = None
            session.close()

    transaction = session_scope

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_store(path: Path | str) -> Store:
    """Open (creating if needed) the store at ``path`` and migrate it."""
    db_path = Path(path).expanduser()
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"create directory {db_path.parent}", e) from e

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    store = Store(db_path, engine)
    try:
        store.schema_version = migrate(engine)
    except Exception:
        engine.dispose()
        raise
    return store
