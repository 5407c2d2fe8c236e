"""
Default storage/encoding collaborator of the placement applier.

Every revision is composed from the untouched original upload plus all
active placements of the document, so moving or removing a signature is a
re-composition without the superseded placement.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

from pypdf.errors import PyPdfError

from core.contracts.storage import ISigningStore
from documents.adapters.storage_adapter import StorageAdapter
from documents.models.document_models import DocumentRecord
from documents.repository.document_repository import DocumentRepository
from signature.exceptions.errors import TransientIO
from signature.logic.naming_strategy import NamingContext, NamingStrategy, RevisionSuffixStrategy
from signature.logic.pdf_signer import PdfSigner, Stamp
from signature.models.geometry import Rect
from signature.models.page import Page
from signature.models.placement import Revision
from signature.models.signature_artifact import SignatureArtifact
from signature.repository.artifact_repository import SQLiteArtifactRepository
from signature.repository.placement_repository import SQLitePlacementRepository

logger = logging.getLogger(__name__)


class PdfStampingStore(ISigningStore):
    def __init__(
        self,
        *,
        storage: StorageAdapter,
        documents: DocumentRepository,
        placements: SQLitePlacementRepository,
        artifacts: SQLiteArtifactRepository,
        naming: Optional[NamingStrategy] = None,
    ) -> None:
        self._storage = storage
        self._documents = documents
        self._placements = placements
        self._artifacts = artifacts
        self._naming = naming or RevisionSuffixStrategy()

    async def stamp(
        self,
        document: DocumentRecord,
        page: Page,
        artifact: SignatureArtifact,
        rect: Rect,
        *,
        exclude: Iterable[str] = (),
    ) -> Revision:
        stamps = self._active_stamps(document.doc_id, exclude)
        stamps.append(Stamp(page_number=page.number, rect=rect, artifact=artifact))
        return await self._write(document, stamps)

    async def restamp(self, document: DocumentRecord, *, exclude: Iterable[str] = ()) -> Revision:
        return await self._write(document, self._active_stamps(document.doc_id, exclude))

    async def discard(self, document: DocumentRecord, revision: Revision) -> None:
        try:
            await asyncio.to_thread(
                self._storage.delete_revision,
                doc_id=document.doc_id,
                filename=Path(revision.file_path).name,
            )
            self._documents.drop_revision(document.doc_id, revision.number)
        except (OSError, sqlite3.Error) as exc:
            raise TransientIO(f"Could not discard revision {revision.number} of {document.doc_id}: {exc}") from exc

    # ------------------------------------------------------------------ #
    def _active_stamps(self, doc_id: str, exclude: Iterable[str]) -> List[Stamp]:
        skip = set(exclude)
        stamps: List[Stamp] = []
        for placement in self._placements.list_active(doc_id):
            if placement.placement_id in skip:
                continue
            artifact = self._artifacts.get(placement.artifact_id)
            if artifact is None:
                logger.warning(
                    "Artifact %s of placement %s is gone; left out of the new revision",
                    placement.artifact_id, placement.placement_id,
                )
                continue
            stamps.append(Stamp(
                page_number=placement.page_number,
                rect=placement.rect,
                artifact=artifact,
                signed_at=placement.created_at,
            ))
        return stamps

    async def _write(self, document: DocumentRecord, stamps: List[Stamp]) -> Revision:
        number = document.current_revision + 1
        filename = self._naming.propose_filename(NamingContext(document.original_name, number))

        try:
            data = await asyncio.to_thread(PdfSigner.compose, input_path=document.file_path, stamps=stamps)
            path = await asyncio.to_thread(
                self._storage.save_revision, doc_id=document.doc_id, data=data, filename=filename
            )
        except (OSError, PyPdfError) as exc:
            logger.error("Writing revision %d of %s failed: %s", number, document.doc_id, exc)
            raise TransientIO(f"Could not write revision {number} of {document.original_name}: {exc}") from exc

        try:
            revision = self._documents.record_revision(document.doc_id, number=number, file_path=path)
        except sqlite3.Error as exc:
            raise TransientIO(f"Could not record revision {number} of {document.doc_id}: {exc}") from exc

        logger.info("Wrote %s (%d stamps, naming=%s)", filename, len(stamps), self._naming.strategy_id())
        return revision
