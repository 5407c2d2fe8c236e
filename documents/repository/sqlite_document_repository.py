"""SQLite implementation of DocumentRepository.

Lightweight repository - only CRUD and simple queries.
File storage is handled by the storage adapter, not here.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.common.db_interface import SQLiteRepository
from documents.models.document_models import DocumentRecord
from signature.models.placement import Revision

logger = logging.getLogger(__name__)


class SQLiteDocumentRepository(SQLiteRepository):
    """SQLite backend for documents and their revision history."""

    def __init__(self, db_path: Path | str) -> None:
        super().__init__(db_path)

    # =========================================================================
    # Schema Management
    # =========================================================================

    def _ensure_schema(self) -> None:
        self.connect().executescript(
            """
            CREATE TABLE IF NOT EXISTS documents (
                doc_id            TEXT PRIMARY KEY,
                owner_id          TEXT NOT NULL,
                original_name     TEXT NOT NULL,
                file_path         TEXT NOT NULL,
                page_count        INTEGER NOT NULL,
                current_revision  INTEGER NOT NULL DEFAULT 0,
                current_file_path TEXT,
                created_at        TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS document_revisions (
                revision_id TEXT PRIMARY KEY,
                doc_id      TEXT NOT NULL,
                number      INTEGER NOT NULL,
                file_path   TEXT NOT NULL,
                created_at  TEXT NOT NULL,
                UNIQUE (doc_id, number)
            );
            """
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, doc_id: str) -> Optional[DocumentRecord]:
        row = self.conn.execute("SELECT * FROM documents WHERE doc_id = ?", (doc_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def list_for_owner(self, owner_id: str) -> List[DocumentRecord]:
        rows = self.conn.execute(
            "SELECT * FROM documents WHERE owner_id = ? ORDER BY created_at", (str(owner_id),)
        ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def revisions(self, doc_id: str) -> List[Revision]:
        rows = self.conn.execute(
            "SELECT * FROM document_revisions WHERE doc_id = ? ORDER BY number", (doc_id,)
        ).fetchall()
        return [
            Revision(
                revision_id=r["revision_id"],
                document_id=r["doc_id"],
                number=int(r["number"]),
                file_path=r["file_path"],
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    # =========================================================================
    # Mutations
    # =========================================================================

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def add(
            self,
            *,
            doc_id: str,
            owner_id: str,
            original_name: str,
            file_path: str,
            page_count: int,
    ) -> DocumentRecord:
        record = DocumentRecord(
            doc_id=doc_id,
            owner_id=str(owner_id),
            original_name=original_name,
            file_path=file_path,
            page_count=page_count,
        )
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO documents
                    (doc_id, owner_id, original_name, file_path, page_count,
                     current_revision, current_file_path, created_at)
                VALUES (?, ?, ?, ?, ?, 0, NULL, ?)
                """,
                (doc_id, record.owner_id, original_name, file_path, page_count,
                 record.created_at.isoformat()),
            )
        logger.info("Registered document %s (%s, %d pages)", doc_id, original_name, page_count)
        return record

    def record_revision(self, doc_id: str, *, number: int, file_path: str) -> Revision:
        revision = Revision(
            revision_id=uuid.uuid4().hex,
            document_id=doc_id,
            number=number,
            file_path=file_path,
            created_at=datetime.now(timezone.utc),
        )
        with self.transaction() as conn:
            conn.execute(
                "INSERT INTO document_revisions (revision_id, doc_id, number, file_path, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (revision.revision_id, doc_id, number, file_path, revision.created_at.isoformat()),
            )
            conn.execute(
                "UPDATE documents SET current_revision = ?, current_file_path = ? WHERE doc_id = ?",
                (number, file_path, doc_id),
            )
        return revision

    def drop_revision(self, doc_id: str, number: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                "DELETE FROM document_revisions WHERE doc_id = ? AND number = ?", (doc_id, number)
            )
            latest = conn.execute(
                "SELECT number, file_path FROM document_revisions WHERE doc_id = ? "
                "ORDER BY number DESC LIMIT 1",
                (doc_id,),
            ).fetchone()
            conn.execute(
                "UPDATE documents SET current_revision = ?, current_file_path = ? WHERE doc_id = ?",
                (latest["number"] if latest else 0, latest["file_path"] if latest else None, doc_id),
            )
        logger.warning("Dropped revision %d of %s", number, doc_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _row_to_record(row) -> DocumentRecord:
        return DocumentRecord(
            doc_id=row["doc_id"],
            owner_id=row["owner_id"],
            original_name=row["original_name"],
            file_path=row["file_path"],
            page_count=int(row["page_count"]),
            current_revision=int(row["current_revision"]),
            current_file_path=row["current_file_path"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
