"""In-process collaborators for applier and batch tests (real sqlite, no PDF I/O)."""
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Iterable, List, Optional, Set

import pytest

from core.contracts.auth import IAuthContext
from core.contracts.rendering import IPageGeometryProvider
from core.contracts.storage import ISigningStore
from core.models.user import User
from documents.repository.sqlite_document_repository import SQLiteDocumentRepository
from signature.exceptions.errors import NotFound
from signature.logic.batch_orchestrator import BatchOrchestrator
from signature.logic.encryption import KeyRing
from signature.logic.placement_applier import PlacementApplier
from signature.models.page import Page
from signature.models.signature_artifact import ArtifactMetadata
from signature.models.signature_enums import ArtifactKind
from signature.repository.artifact_repository import SQLiteArtifactRepository
from signature.repository.placement_repository import SQLitePlacementRepository


class StaticAuth(IAuthContext):
    def __init__(self, principal: Optional[User]) -> None:
        self.principal = principal

    def current_principal(self) -> Optional[User]:
        return self.principal


class LetterGeometry(IPageGeometryProvider):
    """Every page is US Letter; page count comes from the record."""

    def page_count(self, document) -> int:
        return document.page_count

    def page(self, document, number: int, *, scale: float = 1.0) -> Page:
        if not 1 <= number <= document.page_count:
            raise NotFound(f"Page {number} does not exist")
        return Page(document_id=document.doc_id, number=number, width=612.0, height=792.0, scale=scale)


class RecordingStore(ISigningStore):
    """Records revisions in the document repository; fails for selected documents."""

    def __init__(self, documents: SQLiteDocumentRepository) -> None:
        self._documents = documents
        self.fail_for: Set[str] = set()
        self.calls: List[tuple] = []

    async def stamp(self, document, page, artifact, rect, *, exclude: Iterable[str] = ()):
        self.calls.append(("stamp", document.doc_id, page.number, tuple(exclude)))
        return self._next(document)

    async def restamp(self, document, *, exclude: Iterable[str] = ()):
        self.calls.append(("restamp", document.doc_id, None, tuple(exclude)))
        return self._next(document)

    async def discard(self, document, revision) -> None:
        self.calls.append(("discard", document.doc_id, revision.number, ()))
        self._documents.drop_revision(document.doc_id, revision.number)

    def _next(self, document):
        if document.doc_id in self.fail_for:
            raise OSError(f"storage unavailable for {document.doc_id}")
        number = document.current_revision + 1
        return self._documents.record_revision(
            document.doc_id, number=number, file_path=f"{document.doc_id}_signed_r{number}.pdf"
        )


@pytest.fixture
def engine(tmp_path: Path):
    owner = User(id="u-alice", username="alice", full_name="Alice Example")
    db = tmp_path / "signdesk.db"
    documents = SQLiteDocumentRepository(db)
    artifacts = SQLiteArtifactRepository(db, KeyRing(tmp_path / "keyring.json"))
    placements = SQLitePlacementRepository(db)
    store = RecordingStore(documents)
    auth = StaticAuth(owner)
    applier = PlacementApplier(
        artifacts=artifacts,
        documents=documents,
        placements=placements,
        store=store,
        auth=auth,
        geometry=LetterGeometry(),
    )

    def add_document(doc_id: str, *, owner_id: str = owner.id, pages: int = 1):
        return documents.add(
            doc_id=doc_id, owner_id=owner_id, original_name=f"{doc_id}.pdf",
            file_path=str(tmp_path / f"{doc_id}.pdf"), page_count=pages,
        )

    def add_artifact(*, owner_id: str = owner.id, name: str = "Initials"):
        return artifacts.add(
            owner_id=owner_id, name=name, kind=ArtifactKind.TYPED,
            metadata=ArtifactMetadata(full_name="Alice Example", organization="ACME"),
        )

    ns = SimpleNamespace(
        owner=owner,
        documents=documents,
        artifacts=artifacts,
        placements=placements,
        store=store,
        auth=auth,
        applier=applier,
        orchestrator=BatchOrchestrator(applier),
        add_document=add_document,
        add_artifact=add_artifact,
    )
    yield ns
    for repo in (documents, artifacts, placements):
        repo.close()
