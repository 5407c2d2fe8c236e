"""SQLite repository for placements.

Placements are append-only: a move inserts a new row and deactivates the
superseded one in the same transaction.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.common.db_interface import SQLiteRepository
from ..models.geometry import Rect
from ..models.placement import Placement


class SQLitePlacementRepository(SQLiteRepository):
    def __init__(self, db_path: Path | str) -> None:
        super().__init__(db_path)

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS placements (
                    placement_id TEXT PRIMARY KEY,
                    artifact_id  TEXT NOT NULL,
                    document_id  TEXT NOT NULL,
                    page_number  INTEGER NOT NULL,
                    x            REAL NOT NULL,
                    y            REAL NOT NULL,
                    width        REAL NOT NULL,
                    height       REAL NOT NULL,
                    revision     INTEGER NOT NULL,
                    supersedes   TEXT,
                    active       INTEGER NOT NULL DEFAULT 1,
                    created_at   TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_placements_doc ON placements(document_id, active)"
            )

    # ------------------------------------------------------------------ #
    def new_id(self) -> str:
        return uuid.uuid4().hex

    def add(
        self,
        *,
        artifact_id: str,
        document_id: str,
        page_number: int,
        rect: Rect,
        revision: int,
        supersedes: Optional[str] = None,
        placement_id: Optional[str] = None,
    ) -> Placement:
        placement = Placement(
            placement_id=placement_id or self.new_id(),
            artifact_id=artifact_id,
            document_id=document_id,
            page_number=page_number,
            rect=rect,
            revision=revision,
            supersedes=supersedes,
        )
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO placements
                    (placement_id, artifact_id, document_id, page_number,
                     x, y, width, height, revision, supersedes, active, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?)
                """,
                (
                    placement.placement_id,
                    artifact_id,
                    document_id,
                    page_number,
                    rect.x,
                    rect.y,
                    rect.width,
                    rect.height,
                    revision,
                    supersedes,
                    placement.created_at.isoformat(),
                ),
            )
            if supersedes:
                conn.execute(
                    "UPDATE placements SET active = 0 WHERE placement_id = ?", (supersedes,)
                )
        return placement

    def get(self, placement_id: str) -> Optional[Placement]:
        row = self.conn.execute(
            "SELECT * FROM placements WHERE placement_id = ?", (placement_id,)
        ).fetchone()
        return self._from_row(row) if row else None

    def list_active(self, document_id: str) -> List[Placement]:
        rows = self.conn.execute(
            "SELECT * FROM placements WHERE document_id = ? AND active = 1 "
            "ORDER BY revision, created_at",
            (document_id,),
        ).fetchall()
        return [self._from_row(r) for r in rows]

    def deactivate(self, placement_id: str) -> bool:
        with self.transaction() as conn:
            cur = conn.execute(
                "UPDATE placements SET active = 0 WHERE placement_id = ? AND active = 1",
                (placement_id,),
            )
            return cur.rowcount > 0

    def count_active_for_artifact(self, artifact_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM placements WHERE artifact_id = ? AND active = 1",
            (artifact_id,),
        ).fetchone()
        return int(row["n"])

    @staticmethod
    def _from_row(row) -> Placement:
        return Placement(
            placement_id=row["placement_id"],
            artifact_id=row["artifact_id"],
            document_id=row["document_id"],
            page_number=int(row["page_number"]),
            rect=Rect(row["x"], row["y"], row["width"], row["height"]),
            revision=int(row["revision"]),
            supersedes=row["supersedes"],
            active=bool(row["active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
