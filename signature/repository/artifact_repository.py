"""SQLite repository for signature artifacts.

Images are stored Fernet-encrypted; metadata stays in plain columns so
artifacts can be listed without touching the key ring.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from cryptography.fernet import InvalidToken

from core.common.db_interface import SQLiteRepository
from ..logic.encryption import KeyRing
from ..models.signature_artifact import ArtifactMetadata, SignatureArtifact
from ..models.signature_enums import ArtifactKind

logger = logging.getLogger(__name__)


class SQLiteArtifactRepository(SQLiteRepository):
    def __init__(self, db_path: Path | str, key_ring: KeyRing) -> None:
        self._keys = key_ring
        super().__init__(db_path)

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS signature_artifacts (
                    artifact_id   TEXT PRIMARY KEY,
                    owner_id      TEXT NOT NULL,
                    name          TEXT NOT NULL,
                    kind          TEXT NOT NULL,
                    full_name     TEXT NOT NULL,
                    organization  TEXT NOT NULL DEFAULT '',
                    location      TEXT NOT NULL DEFAULT '',
                    time_zone     TEXT NOT NULL DEFAULT 'UTC',
                    image_token   BLOB,
                    created_at    TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_artifacts_owner ON signature_artifacts(owner_id)"
            )

    # ------------------------------------------------------------------ #
    def add(
        self,
        *,
        owner_id: str,
        name: str,
        kind: ArtifactKind,
        metadata: ArtifactMetadata,
        image_png: Optional[bytes] = None,
    ) -> SignatureArtifact:
        artifact = SignatureArtifact(
            artifact_id=uuid.uuid4().hex,
            owner_id=str(owner_id),
            name=name,
            kind=kind,
            metadata=metadata,
            image_png=image_png,
        )
        token = self._keys.encrypt(image_png) if image_png else None
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO signature_artifacts
                    (artifact_id, owner_id, name, kind, full_name, organization,
                     location, time_zone, image_token, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    artifact.artifact_id,
                    artifact.owner_id,
                    artifact.name,
                    artifact.kind.value,
                    metadata.full_name,
                    metadata.organization,
                    metadata.location,
                    metadata.time_zone,
                    token,
                    artifact.created_at.isoformat(),
                ),
            )
        return artifact

    def get(self, artifact_id: str) -> Optional[SignatureArtifact]:
        row = self.conn.execute(
            "SELECT * FROM signature_artifacts WHERE artifact_id = ?", (artifact_id,)
        ).fetchone()
        return self._from_row(row) if row else None

    def list_for_owner(self, owner_id: str) -> List[SignatureArtifact]:
        rows = self.conn.execute(
            "SELECT * FROM signature_artifacts WHERE owner_id = ? ORDER BY created_at",
            (str(owner_id),),
        ).fetchall()
        return [self._from_row(r) for r in rows]

    def delete(self, artifact_id: str) -> bool:
        with self.transaction() as conn:
            cur = conn.execute(
                "DELETE FROM signature_artifacts WHERE artifact_id = ?", (artifact_id,)
            )
            return cur.rowcount > 0

    # ------------------------------------------------------------------ #
    def _from_row(self, row) -> SignatureArtifact:
        image: Optional[bytes] = None
        if row["image_token"]:
            try:
                image = self._keys.decrypt(bytes(row["image_token"]))
            except InvalidToken:
                # degrade to a text-only artifact rather than failing the lookup
                logger.error("Cannot decrypt image of artifact %s", row["artifact_id"])
        return SignatureArtifact(
            artifact_id=row["artifact_id"],
            owner_id=row["owner_id"],
            name=row["name"],
            kind=ArtifactKind(row["kind"]),
            metadata=ArtifactMetadata(
                full_name=row["full_name"],
                organization=row["organization"],
                location=row["location"],
                time_zone=row["time_zone"],
            ),
            image_png=image,
            created_at=datetime.fromisoformat(row["created_at"]),
        )
