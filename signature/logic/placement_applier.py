# signature/logic/placement_applier.py
"""
Applies one artifact to one page of one document.

Checks run in a fixed order (bounds, artifact, document, page) before the
storage collaborator is called, so a rejected request never produces a
revision. A revision whose placement row cannot be written is discarded again. Every outcome is returned as ``Applied`` or ``Failed``; nothing is
retried here.
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Dict, Optional

from core.contracts.audit import IAuditLogger
from core.contracts.auth import IAuthContext
from core.contracts.rendering import IPageGeometryProvider
from core.contracts.storage import ISigningStore
from core.models.user import User
from documents.models.document_models import DocumentRecord
from documents.repository.document_repository import DocumentRepository
from ..exceptions.errors import Forbidden, NotFound, OutOfBounds, PlacementError, TransientIO
from ..models.batch import Applied, ApplyOutcome, Failed
from ..models.geometry import Rect
from ..models.page import Page
from ..models.placement import Placement, Revision
from ..models.position import Position
from ..models.signature_artifact import SignatureArtifact
from ..repository.artifact_repository import SQLiteArtifactRepository
from ..repository.placement_repository import SQLitePlacementRepository
from .position_resolver import PositionResolver

logger = logging.getLogger(__name__)

FEATURE = "signature"


class PlacementApplier:
    def __init__(
        self,
        *,
        artifacts: SQLiteArtifactRepository,
        documents: DocumentRepository,
        placements: SQLitePlacementRepository,
        store: ISigningStore,
        auth: IAuthContext,
        geometry: IPageGeometryProvider,
        resolver: Optional[PositionResolver] = None,
        audit: Optional[IAuditLogger] = None,
    ) -> None:
        self._artifacts = artifacts
        self._documents = documents
        self._placements = placements
        self._store = store
        self._auth = auth
        self._geometry = geometry
        self._resolver = resolver or PositionResolver()
        self._audit = audit
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def resolver(self) -> PositionResolver:
        return self._resolver

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #
    async def apply(
        self,
        artifact_id: str,
        document_id: str,
        page: Page,
        rect: Rect,
        *,
        supersedes: Optional[str] = None,
    ) -> ApplyOutcome:
        """Place *artifact_id* at the page-native *rect*; a move passes *supersedes*."""
        try:
            self._check_bounds(page, rect)
            principal = self._principal()
            artifact = self._owned_artifact(artifact_id, principal)
            async with self._lock(document_id):
                # re-read inside the lock: the revision number must be current
                document = self._owned_document(document_id, principal)
                self._check_page(document, page)
                if supersedes is not None:
                    self._active_placement(supersedes, document_id)

                exclude = (supersedes,) if supersedes else ()
                revision = await self._call_store(
                    self._store.stamp(document, page, artifact, rect, exclude=exclude)
                )
                try:
                    placement = self._record(artifact_id, document_id, page.number, rect, revision, supersedes)
                except TransientIO:
                    await self._discard(document, revision)
                    raise
        except PlacementError as exc:
            return self._failed(exc, artifact_id=artifact_id, document_id=document_id, page=page.number)

        self._log(
            "placement_moved" if supersedes else "placement_applied",
            reference_id=document_id,
            message=f"{artifact.name} on page {page.number}, revision {revision.number}",
            data={
                "placement_id": placement.placement_id,
                "artifact_id": artifact_id,
                "page": page.number,
                "rect": rect.as_dict(),
                "revision": revision.number,
                "supersedes": supersedes,
            },
        )
        return Applied(revision=revision, placement=placement)

    async def apply_position(
        self,
        artifact_id: str,
        document_id: str,
        page_number: int,
        position: Position,
        *,
        supersedes: Optional[str] = None,
    ) -> ApplyOutcome:
        """Resolve *position* against the page first; resolve errors become ``Failed``."""
        try:
            document = self._documents.get(document_id)
            if document is None:
                raise NotFound(f"Document {document_id} not found")
            page = self._geometry.page(document, page_number)
            rect = self._resolver.resolve(position, page)
        except PlacementError as exc:
            return self._failed(exc, artifact_id=artifact_id, document_id=document_id, page=page_number)
        return await self.apply(artifact_id, document_id, page, rect, supersedes=supersedes)

    async def remove(self, placement_id: str) -> ApplyOutcome:
        """Discard a placement; the new revision is composed without it."""
        document_id: Optional[str] = None
        try:
            principal = self._principal()
            placement = self._placements.get(placement_id)
            if placement is None or not placement.active:
                raise NotFound(f"Placement {placement_id} not found")
            document_id = placement.document_id
            async with self._lock(document_id):
                document = self._owned_document(document_id, principal)
                placement = self._active_placement(placement_id, document_id)
                revision = await self._call_store(
                    self._store.restamp(document, exclude=(placement_id,))
                )
                try:
                    self._deactivate(placement_id)
                except TransientIO:
                    await self._discard(document, revision)
                    raise
        except PlacementError as exc:
            return self._failed(exc, placement_id=placement_id, document_id=document_id)

        self._log(
            "placement_removed",
            reference_id=document_id,
            message=f"Placement {placement_id} removed, revision {revision.number}",
            data={"placement_id": placement_id, "revision": revision.number},
        )
        return Applied(revision=revision, placement=placement)

    # ------------------------------------------------------------------ #
    #  Checks
    # ------------------------------------------------------------------ #
    def _check_bounds(self, page: Page, rect: Rect) -> None:
        eps = self._resolver.epsilon
        if not rect.is_finite() or rect.width <= 0 or rect.height <= 0:
            raise OutOfBounds(f"Degenerate rectangle {rect}")
        if not rect.fits_inside(page.width, page.height, eps):
            raise OutOfBounds(
                f"Rectangle {rect} exceeds page {page.number} ({page.width:.2f}x{page.height:.2f})"
            )

    def _principal(self) -> User:
        principal = self._auth.current_principal()
        if principal is None:
            raise Forbidden("No authenticated principal")
        return principal

    def _owned_artifact(self, artifact_id: str, principal: User) -> SignatureArtifact:
        artifact = self._artifacts.get(artifact_id)
        if artifact is None:
            raise NotFound(f"Signature artifact {artifact_id} not found")
        if artifact.owner_id != principal.id:
            raise Forbidden(f"Signature artifact {artifact_id} belongs to another user")
        return artifact

    def _owned_document(self, document_id: str, principal: User) -> DocumentRecord:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")
        if document.owner_id != principal.id:
            raise Forbidden(f"Document {document_id} belongs to another user")
        return document

    @staticmethod
    def _check_page(document: DocumentRecord, page: Page) -> None:
        if page.document_id != document.doc_id or not 1 <= page.number <= document.page_count:
            raise NotFound(f"Page {page.number} does not exist in document {document.doc_id}")

    def _active_placement(self, placement_id: str, document_id: str) -> Placement:
        placement = self._placements.get(placement_id)
        if placement is None or not placement.active or placement.document_id != document_id:
            raise NotFound(f"Active placement {placement_id} not found on document {document_id}")
        return placement

    # ------------------------------------------------------------------ #
    #  Collaborators
    # ------------------------------------------------------------------ #
    def _lock(self, document_id: str) -> asyncio.Lock:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = self._locks[document_id] = asyncio.Lock()
        return lock

    @staticmethod
    async def _call_store(call) -> Revision:
        try:
            return await call
        except PlacementError:
            raise
        except Exception as exc:
            logger.exception("Signing store failed")
            raise TransientIO(str(exc) or type(exc).__name__) from exc

    def _record(
        self,
        artifact_id: str,
        document_id: str,
        page_number: int,
        rect: Rect,
        revision: Revision,
        supersedes: Optional[str],
    ) -> Placement:
        try:
            return self._placements.add(
                artifact_id=artifact_id,
                document_id=document_id,
                page_number=page_number,
                rect=rect,
                revision=revision.number,
                supersedes=supersedes,
            )
        except sqlite3.Error as exc:
            raise TransientIO(f"Could not record placement: {exc}") from exc

    def _deactivate(self, placement_id: str) -> None:
        try:
            self._placements.deactivate(placement_id)
        except sqlite3.Error as exc:
            raise TransientIO(f"Could not deactivate placement: {exc}") from exc

    async def _discard(self, document: DocumentRecord, revision: Revision) -> None:
        """Drop a revision whose placement bookkeeping failed."""
        try:
            await self._store.discard(document, revision)
        except PlacementError:
            logger.exception("Could not roll back revision %d of %s", revision.number, document.doc_id)

    def _failed(self, error: PlacementError, **context) -> Failed:
        logger.info("Placement rejected (%s): %s", error.kind.value, error.message)
        self._log(
            "placement_failed",
            level="WARNING",
            reference_id=context.get("document_id"),
            message=str(error),
            data={k: v for k, v in context.items() if v is not None},
        )
        return Failed(error)

    def _log(self, event: str, *, level: str = "INFO", reference_id: Optional[str] = None,
             message: str = "", data: Optional[dict] = None) -> None:
        if self._audit is None:
            return
        principal = self._auth.current_principal()
        self._audit.log(
            FEATURE,
            event,
            user_id=principal.id if principal else None,
            username=principal.username if principal else None,
            level=level,
            reference_id=reference_id,
            message=message,
            data=data,
        )
