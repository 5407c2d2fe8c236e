"""
core/common/db_interface.py
===========================

Shared interface + helpers for SQLite-backed repositories.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import sqlite3


def create_sqlite_connection(
    db_path: Path,
    *,
    check_same_thread: bool = False,
    foreign_keys: bool = False,
) -> sqlite3.Connection:
    """Create a sqlite3 connection with common defaults."""
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    return conn


class DatabaseAccess(ABC):
    """Interface for modules that depend on a database."""

    @property
    @abstractmethod
    def db_path(self) -> Path:
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> sqlite3.Connection:
        raise NotImplementedError


class SQLiteRepository(DatabaseAccess):
    """Default SQLite implementation with a shared connection.

    Subclasses put their DDL into ``_ensure_schema``; it runs once on construction.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        check_same_thread: bool = False,
        foreign_keys: bool = False,
    ) -> None:
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._check_same_thread = check_same_thread
        self._foreign_keys = foreign_keys
        self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def conn(self) -> sqlite3.Connection:
        return self.connect()

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = create_sqlite_connection(
                self._db_path,
                check_same_thread=self._check_same_thread,
                foreign_keys=self._foreign_keys,
            )
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self.connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None

    def _ensure_schema(self) -> None:
        """Hook for subclasses."""
