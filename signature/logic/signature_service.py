# signature/logic/signature_service.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from core.common.app_context import AppContext
from core.common.session_events import UserSessionEvent
from core.contracts.audit import IAuditLogger
from core.contracts.auth import IAuthContext
from core.contracts.certificates import ICertificateGenerator
from core.contracts.rendering import IPageGeometryProvider
from core.models.user import User
from documents.models.document_models import DocumentRecord
from documents.repository.document_repository import DocumentRepository
from documents.adapters.storage_adapter import StorageAdapter

from ..exceptions.errors import Forbidden, InvalidPosition, NotFound
from ..models.batch import ApplyOutcome, BatchResult, BatchTarget
from ..models.geometry import Point, Rect
from ..models.grid import DEFAULT_LAYOUT, GridCell, GridLayout
from ..models.page import Page
from ..models.placement import Placement
from ..models.position import GridPosition, Position
from ..models.signature_artifact import ArtifactMetadata, SignatureArtifact
from ..models.signature_enums import ArtifactKind
from ..repository.artifact_repository import SQLiteArtifactRepository
from ..repository.placement_repository import SQLitePlacementRepository
from .artifact_renderer import Stroke, render_png_from_strokes, render_png_from_text
from .batch_orchestrator import BatchOrchestrator
from .drag_controller import DragController, DragSession, PointerEvent
from .placement_applier import PlacementApplier

logger = logging.getLogger(__name__)

_FEATURE_ID = "signature"


class SignatureService:
    """
    Signing core as seen by the UI layer (no UI code here).

    Interaction calls (grid selection, pointer events) are synchronous except
    the ones that end in a write; those are coroutines returning typed
    ``Applied``/``Failed`` outcomes instead of raising.
    """

    # -------- Construction ---------------------------------------------------
    def __init__(
        self,
        *,
        artifacts: SQLiteArtifactRepository,
        documents: DocumentRepository,
        placements: SQLitePlacementRepository,
        storage: StorageAdapter,
        geometry: IPageGeometryProvider,
        applier: PlacementApplier,
        orchestrator: BatchOrchestrator,
        certificates: ICertificateGenerator,
        auth: IAuthContext,
        audit: Optional[IAuditLogger] = None,
        layout: GridLayout = DEFAULT_LAYOUT,
    ) -> None:
        self._artifacts = artifacts
        self._documents = documents
        self._placements = placements
        self._storage = storage
        self._geometry = geometry
        self._applier = applier
        self._orchestrator = orchestrator
        self._certificates = certificates
        self._auth = auth
        self._audit = audit
        self._layout = layout
        self._drags = DragController()
        AppContext.subscribe_user_session(self._on_session_event)

    @property
    def layout(self) -> GridLayout:
        return self._layout

    def _on_session_event(self, event: UserSessionEvent) -> None:
        cancelled = self._drags.cancel_all(f"session {event.type}")
        if cancelled:
            logger.info("Cancelled %d drag session(s) on %s", cancelled, event.type)

    # -------- Principal ------------------------------------------------------
    def _principal(self) -> User:
        principal = self._auth.current_principal()
        if principal is None:
            raise Forbidden("No authenticated principal")
        return principal

    def _owned_document(self, document_id: str) -> DocumentRecord:
        principal = self._principal()
        document = self._documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")
        if document.owner_id != principal.id:
            raise Forbidden(f"Document {document_id} belongs to another user")
        return document

    def _log(self, event: str, *, reference_id: Optional[str] = None, message: str = "",
             data: Optional[dict] = None) -> None:
        if self._audit is None:
            return
        principal = self._auth.current_principal()
        self._audit.log(
            _FEATURE_ID,
            event,
            user_id=principal.id if principal else None,
            username=principal.username if principal else None,
            reference_id=reference_id,
            message=message,
            data=data,
        )

    # -------- Documents ------------------------------------------------------
    def register_document(self, source_path: str | Path) -> DocumentRecord:
        """Store an uploaded PDF as the immutable original of a new document."""
        principal = self._principal()
        source = Path(source_path)
        if source.suffix.lower() != ".pdf":
            raise InvalidPosition(f"Only PDF files can be signed, got {source.name}")
        if not source.is_file():
            raise NotFound(f"File {source} not found")

        doc_id = self._documents.new_id()
        stored = self._storage.save_original(doc_id=doc_id, source_path=str(source))
        draft = DocumentRecord(doc_id=doc_id, owner_id=principal.id, original_name=source.name,
                               file_path=stored, page_count=0)
        page_count = self._geometry.page_count(draft)
        if page_count < 1:
            raise InvalidPosition(f"{source.name} has no pages")
        record = self._documents.add(
            doc_id=doc_id,
            owner_id=principal.id,
            original_name=source.name,
            file_path=stored,
            page_count=page_count,
        )
        self._log("document_registered", reference_id=doc_id, message=source.name,
                  data={"pages": page_count})
        return record

    def list_documents(self) -> List[DocumentRecord]:
        return self._documents.list_for_owner(self._principal().id)

    def page(self, document_id: str, page_number: int, *, scale: float = 1.0) -> Page:
        """Geometry of a page at the viewer's current scale."""
        return self._geometry.page(self._owned_document(document_id), page_number, scale=scale)

    # -------- Artifacts ------------------------------------------------------
    def _metadata(self, principal: User, full_name: Optional[str], organization: Optional[str],
                  location: str, time_zone: str) -> ArtifactMetadata:
        name = (full_name or principal.full_name or principal.username or "").strip()
        if not name:
            raise InvalidPosition("Signature holder name is required")
        return ArtifactMetadata(
            full_name=name,
            organization=(organization if organization is not None else principal.organization) or "",
            location=location,
            time_zone=time_zone or "UTC",
        )

    def create_drawn_artifact(
        self,
        name: str,
        strokes: Sequence[Stroke],
        size: Tuple[int, int],
        *,
        stroke_width: int = 3,
        color: str = "#000000",
        full_name: Optional[str] = None,
        organization: Optional[str] = None,
        location: str = "",
        time_zone: str = "UTC",
    ) -> SignatureArtifact:
        principal = self._principal()
        metadata = self._metadata(principal, full_name, organization, location, time_zone)
        try:
            png = render_png_from_strokes(strokes, size, stroke_width, color)
        except ValueError as exc:
            raise InvalidPosition(str(exc)) from exc
        return self._add_artifact(principal, name, ArtifactKind.DRAWN, metadata, png)

    def create_typed_artifact(
        self,
        name: str,
        *,
        full_name: Optional[str] = None,
        organization: Optional[str] = None,
        location: str = "",
        time_zone: str = "UTC",
        render_image: bool = True,
        font_size: int = 48,
    ) -> SignatureArtifact:
        """
        Typed signature. With ``render_image=False`` no PNG is stored and the
        artifact is stamped as a text block (name, organization, location, time).
        """
        principal = self._principal()
        metadata = self._metadata(principal, full_name, organization, location, time_zone)
        png = render_png_from_text(metadata.full_name, font_size=font_size) if render_image else None
        return self._add_artifact(principal, name, ArtifactKind.TYPED, metadata, png)

    def _add_artifact(self, principal: User, name: str, kind: ArtifactKind,
                      metadata: ArtifactMetadata, png: Optional[bytes]) -> SignatureArtifact:
        artifact = self._artifacts.add(
            owner_id=principal.id,
            name=(name or metadata.full_name).strip(),
            kind=kind,
            metadata=metadata,
            image_png=png,
        )
        self._log("artifact_created", reference_id=artifact.artifact_id,
                  message=f"{kind.value} signature '{artifact.name}'",
                  data={"fingerprint": artifact.fingerprint})
        return artifact

    def list_artifacts(self) -> List[SignatureArtifact]:
        return self._artifacts.list_for_owner(self._principal().id)

    def delete_artifact(self, artifact_id: str) -> bool:
        """Owner-only. Refused while the artifact is still placed on a document."""
        principal = self._principal()
        artifact = self._artifacts.get(artifact_id)
        if artifact is None:
            raise NotFound(f"Signature artifact {artifact_id} not found")
        if artifact.owner_id != principal.id:
            raise Forbidden(f"Signature artifact {artifact_id} belongs to another user")
        in_use = self._placements.count_active_for_artifact(artifact_id)
        if in_use:
            raise Forbidden(f"Signature artifact {artifact_id} is still placed {in_use} time(s)")
        deleted = self._artifacts.delete(artifact_id)
        if deleted:
            self._log("artifact_deleted", reference_id=artifact_id, message=artifact.name)
        return deleted

    # -------- Grid selection -------------------------------------------------
    def select_grid_cell(self, cell: GridCell | str) -> GridPosition:
        return GridPosition.of(cell, self._layout)

    def preview_rect(self, document_id: str, page_number: int, position: Position,
                     *, scale: float = 1.0, origin: Point = Point(0.0, 0.0)) -> Rect:
        """Where *position* would land, in viewport pixels."""
        page = self.page(document_id, page_number, scale=scale)
        resolver = self._applier.resolver
        native = resolver.resolve(position, page)
        rendered = resolver.mapper.rect_to_viewport(native, page)
        return rendered.moved_to(rendered.x + origin.x, rendered.y + origin.y)

    # -------- Drag -----------------------------------------------------------
    def begin_drag(
        self,
        placement_id: str,
        event: PointerEvent,
        *,
        scale: float,
        origin: Point = Point(0.0, 0.0),
    ) -> Optional[DragSession]:
        """
        Pointer-down on a placed signature. Returns the session, or None when
        the pointer missed the signature.
        """
        placement = self._placements.get(placement_id)
        if placement is None or not placement.active:
            raise NotFound(f"Placement {placement_id} not found")
        page = self.page(placement.document_id, placement.page_number, scale=scale)
        rendered = self._applier.resolver.mapper.rect_to_viewport(placement.rect, page)
        current = rendered.moved_to(rendered.x + origin.x, rendered.y + origin.y)

        async def commit(position) -> ApplyOutcome:
            return await self._applier.apply_position(
                placement.artifact_id,
                placement.document_id,
                placement.page_number,
                position,
                supersedes=placement.placement_id,
            )

        return self._drags.begin_drag(
            placement_id, event, page=page, current_rect=current, on_commit=commit, origin=origin
        )

    def on_pointer_move(self, placement_id: str, event: PointerEvent) -> Optional[Rect]:
        return self._drags.on_pointer_move(placement_id, event)

    async def on_pointer_up(self, placement_id: str, event: Optional[PointerEvent] = None) -> Optional[ApplyOutcome]:
        return await self._drags.on_pointer_up(placement_id, event)

    def cancel_drag(self, placement_id: str, reason: str = "cancelled") -> Optional[Rect]:
        return self._drags.cancel(placement_id, reason)

    # -------- Apply ----------------------------------------------------------
    async def apply_to_document(
        self, artifact_id: str, document_id: str, page_number: int, position: Position
    ) -> ApplyOutcome:
        return await self._applier.apply_position(artifact_id, document_id, page_number, position)

    async def apply_to_batch(
        self,
        artifact_id: str,
        targets: Iterable[BatchTarget | Tuple[str, int]],
        position: Position,
        *,
        concurrency: Optional[int] = None,
    ) -> BatchResult:
        normalized = [t if isinstance(t, BatchTarget) else BatchTarget(*t) for t in targets]
        return await self._orchestrator.run(artifact_id, normalized, position, concurrency=concurrency)

    async def apply_to_all_pages(
        self,
        artifact_id: str,
        document_id: str,
        position: Position,
        *,
        concurrency: Optional[int] = None,
    ) -> BatchResult:
        document = self._owned_document(document_id)
        targets = [BatchTarget(document_id, n) for n in range(1, document.page_count + 1)]
        return await self._orchestrator.run(artifact_id, targets, position, concurrency=concurrency)

    async def remove_placement(self, placement_id: str) -> ApplyOutcome:
        self._drags.cancel(placement_id, "placement removed")
        return await self._applier.remove(placement_id)

    def list_placements(self, document_id: str) -> List[Placement]:
        self._owned_document(document_id)
        return self._placements.list_active(document_id)

    # -------- Certificates ---------------------------------------------------
    def certificate_for(self, placement_id: str) -> bytes:
        placement = self._placements.get(placement_id)
        if placement is None:
            raise NotFound(f"Placement {placement_id} not found")
        self._owned_document(placement.document_id)
        artifact = self._artifacts.get(placement.artifact_id)
        if artifact is None:
            raise NotFound(f"Signature artifact {placement.artifact_id} not found")
        revision = next(
            (r for r in self._documents.revisions(placement.document_id) if r.number == placement.revision),
            None,
        )
        if revision is None:
            raise NotFound(f"Revision {placement.revision} of {placement.document_id} not found")
        pdf = self._certificates.generate(placement, artifact, revision)
        self._log("certificate_generated", reference_id=placement_id,
                  data={"revision": revision.number})
        return pdf
