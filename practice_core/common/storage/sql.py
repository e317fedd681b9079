"""
SQL Storage Backend Module

This module implements the key-value storage capability on top of a
SQLAlchemy engine, storing each key as one row of ``key_value_entries``.
Any database SQLAlchemy supports can host the rows; writes are
last-write-wins.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from practice_core.common.exceptions import StorageError
from practice_core.common.logger import app_logger
from practice_core.common.storage.base import KeyValueStorage
from practice_core.database.base import Base
from practice_core.database.models import KeyValueEntry

# Module logger
logger = app_logger.getChild("storage.sql")


class SQLStorage(KeyValueStorage):
    """
    SQLAlchemy-backed key-value storage.

    Each operation runs in its own short transaction, so the adapter can be
    shared by callers that never hold a session themselves.
    """

    def __init__(
        self,
        engine: Union[Engine, str],
        create_tables: bool = True,
        name: str = "sql"
    ):
        """
        Initialize the SQL storage backend.

        Args:
            engine: SQLAlchemy engine or database URL
            create_tables: Whether to create the backing table if missing
            name: Name for this storage backend (default: "sql")
        """
        self.engine = create_engine(engine) if isinstance(engine, str) else engine
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._name = name

        if create_tables:
            try:
                Base.metadata.create_all(self.engine, tables=[KeyValueEntry.__table__])
            except SQLAlchemyError as e:
                raise StorageError("Failed to create storage table", original_exception=e)

    @property
    def name(self) -> str:
        """Get the name of this storage backend."""
        return self._name

    @contextmanager
    def _session(self, key: str, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"SQL storage {operation} failed for '{key}': {e}")
            raise StorageError(f"{operation} failed for '{key}'", key=key, original_exception=e)
        finally:
            session.close()

    def get(self, key: str) -> Optional[str]:
        with self._session(key, "get") as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for '{key}' must be a string, got {type(value).__name__}", key=key)

        with self._session(key, "set") as session:
            entry = session.get(KeyValueEntry, key)
            if entry is None:
                session.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value

    def remove(self, key: str) -> None:
        with self._session(key, "remove") as session:
            entry = session.get(KeyValueEntry, key)
            if entry is not None:
                session.delete(entry)
