"""
core/logging/logic/logger.py
============================

Thread-safe audit logger with SQLite backend and auto-fill of the principal
name when it is not passed explicitly.

- Reuses a single database connection instead of creating new ones per operation
- Connection is thread-safe via check_same_thread=False and explicit locking
- ``configure_logging`` applies the configured level to stdlib ``logging``
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Optional

from core.contracts.audit import IAuditLogger
from core.logging.models.log_entry import LogEntry

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Configure the root logger once; *level* defaults to ``[Logging] level``."""
    if level is None:
        from core.config.config_service import config_service  # lazy import
        level = config_service.logging.level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger().setLevel(level)


class AuditLogger(IAuditLogger):
    """SQLite audit trail with auto-username."""

    def __init__(self, db_path: Path | str) -> None:
        self._lock = threading.Lock()
        self.db_path: Path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._ensure_db()

    # ------------------------------------------------------------------ #
    #  Connection management (reuse single connection)                   #
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            os.makedirs(self.db_path.parent, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        user_id: Optional[str] = None,
        username: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: str = "",
        data: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Persist one audit entry.

        Auto-username: when *username* is omitted the logger falls back to
        ``AppContext.current_user``; otherwise "unknown" is stored.
        """
        if username is None or user_id is None:
            # lazy import, app_context imports contracts only
            from core.common.app_context import AppContext
            principal = AppContext.get_current_user()
            if principal is not None:
                username = username or principal.username
                user_id = user_id or principal.id

        entry = LogEntry(
            id=None,
            timestamp=datetime.now(timezone.utc),
            user_id=user_id,
            username=username or "unknown",
            feature=feature,
            event=event,
            reference_id=reference_id,
            message=message or None,
            log_level=level,
            data=dict(data or {}),
        )
        self._insert_log(entry)

    # ------------------------------------------------------------------ #
    #  Fetch / Query / Clear                                             #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        with self._lock:
            rows = self._get_connection().execute(
                "SELECT * FROM logs ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    def query_logs(
        self,
        *,
        user_id: Optional[str] = None,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        query = "SELECT * FROM logs WHERE 1=1"
        params: list[object] = []

        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        if feature is not None:
            query += " AND feature = ?"
            params.append(feature)
        if event is not None:
            query += " AND event = ?"
            params.append(event)
        if reference_id is not None:
            query += " AND reference_id = ?"
            params.append(reference_id)
        if level is not None:
            query += " AND log_level = ?"
            params.append(level)

        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        with self._lock:
            rows = self._get_connection().execute(query, params).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    def clear_logs(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("DELETE FROM logs")
            conn.commit()

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    user_id TEXT,
                    username TEXT,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    data TEXT,
                    log_level TEXT NOT NULL DEFAULT 'INFO'
                )
                """
            )
            conn.commit()

    def _insert_log(self, entry: LogEntry) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO logs
                    (timestamp, user_id, username, feature, event,
                     reference_id, message, data, log_level)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.timestamp.isoformat(),
                    entry.user_id,
                    entry.username,
                    entry.feature,
                    entry.event,
                    entry.reference_id,
                    entry.message,
                    json.dumps(entry.data, ensure_ascii=False, default=str),
                    entry.log_level,
                ),
            )
            conn.commit()
