"""Revision composition against real PDFs (no applier involved)."""
from __future__ import annotations

import asyncio
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader

from conftest import write_pdf
from documents.adapters.filesystem_storage_adapter import FilesystemStorageAdapter
from documents.logic.pdf_stamping_store import PdfStampingStore
from documents.repository.sqlite_document_repository import SQLiteDocumentRepository
from signature.exceptions.errors import TransientIO
from signature.logic.encryption import KeyRing
from signature.models.geometry import Rect
from signature.models.page import Page
from signature.models.signature_artifact import ArtifactMetadata, SignatureArtifact
from signature.models.signature_enums import ArtifactKind
from signature.repository.artifact_repository import SQLiteArtifactRepository
from signature.repository.placement_repository import SQLitePlacementRepository

RECT = Rect(72.0, 72.0, 200.0, 60.0)


@pytest.fixture
def env(tmp_path):
    db = tmp_path / "s.db"
    storage = FilesystemStorageAdapter(tmp_path / "store")
    documents = SQLiteDocumentRepository(db)
    placements = SQLitePlacementRepository(db)
    artifacts = SQLiteArtifactRepository(db, KeyRing(tmp_path / "keys.json"))
    store = PdfStampingStore(storage=storage, documents=documents, placements=placements, artifacts=artifacts)

    upload = write_pdf(tmp_path / "Lease.pdf", [(612.0, 792.0, 0), (612.0, 792.0, 0)])
    original = storage.save_original(doc_id="d1", source_path=str(upload))
    documents.add(doc_id="d1", owner_id="u1", original_name="Lease.pdf", file_path=original, page_count=2)
    artifact = artifacts.add(
        owner_id="u1", name="Block", kind=ArtifactKind.TYPED,
        metadata=ArtifactMetadata(full_name="Alice Example", organization="ACME"),
    )
    yield documents, placements, store, artifact
    for repo in (documents, placements, artifacts):
        repo.close()


def _page(number: int) -> Page:
    return Page(document_id="d1", number=number, width=612.0, height=792.0)


def _texts(path: str) -> list[str]:
    return [page.extract_text() or "" for page in PdfReader(path).pages]


def test_stamp_writes_next_revision_from_original(env) -> None:
    documents, placements, store, artifact = env

    revision = asyncio.run(store.stamp(documents.get("d1"), _page(2), artifact, RECT))

    assert revision.number == 1
    assert Path(revision.file_path).name == "Lease_signed_r1.pdf"
    doc = documents.get("d1")
    assert doc.current_revision == 1
    assert doc.latest_path == revision.file_path
    first, second = _texts(revision.file_path)
    assert "Alice Example" not in first
    assert "Alice Example" in second
    assert "Alice Example" not in "".join(_texts(doc.file_path))


def test_restamp_recomposes_active_placements_without_excluded(env) -> None:
    documents, placements, store, artifact = env
    r1 = asyncio.run(store.stamp(documents.get("d1"), _page(1), artifact, RECT))
    placements.add(artifact_id=artifact.artifact_id, document_id="d1", page_number=1, rect=RECT, revision=1)
    r2 = asyncio.run(store.stamp(documents.get("d1"), _page(2), artifact, RECT))
    dropped = placements.add(artifact_id=artifact.artifact_id, document_id="d1", page_number=2, rect=RECT, revision=2)

    r3 = asyncio.run(store.restamp(documents.get("d1"), exclude=[dropped.placement_id]))

    assert [r1.number, r2.number, r3.number] == [1, 2, 3]
    assert "Alice Example" in _texts(r2.file_path)[1]
    first, second = _texts(r3.file_path)
    assert "Alice Example" in first
    assert "Alice Example" not in second


def test_unreadable_original_is_transient(env, tmp_path) -> None:
    documents, placements, store, artifact = env
    doc = documents.get("d1")
    Path(doc.file_path).write_bytes(b"garbage")

    with pytest.raises(TransientIO):
        asyncio.run(store.stamp(doc, _page(1), artifact, RECT))
    assert documents.get("d1").current_revision == 0


def test_discard_restores_previous_revision(env) -> None:
    documents, placements, store, artifact = env
    r1 = asyncio.run(store.stamp(documents.get("d1"), _page(1), artifact, RECT))
    r2 = asyncio.run(store.stamp(documents.get("d1"), _page(2), artifact, RECT))

    asyncio.run(store.discard(documents.get("d1"), r2))

    doc = documents.get("d1")
    assert doc.current_revision == 1
    assert doc.latest_path == r1.file_path
    assert [r.number for r in documents.revisions("d1")] == [1]
    assert not Path(r2.file_path).exists()
    assert Path(r1.file_path).exists()

    asyncio.run(store.discard(documents.get("d1"), r1))
    doc = documents.get("d1")
    assert (doc.current_revision, doc.current_file_path) == (0, None)
    assert doc.latest_path == doc.file_path


# --------------------------------------------------------------------------- #
#  Stamp orientation on rotated pages
# --------------------------------------------------------------------------- #
def _mul(m, n):
    a, b, c, d, e, f = m
    A, B, C, D, E, F = n
    return (a * A + b * C, a * B + b * D, c * A + d * C, c * B + d * D, e * A + f * C + E, e * B + f * D + F)


def _image_matrix(path: str, page_index: int = 0):
    """CTM in effect when the (single) image XObject is painted."""
    ctm = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
    stack = []
    found = None
    for operands, operator in PdfReader(path).pages[page_index].get_contents().operations:
        if operator == b"q":
            stack.append(ctm)
        elif operator == b"Q":
            ctm = stack.pop()
        elif operator == b"cm":
            ctm = _mul(tuple(float(v) for v in operands), ctm)
        elif operator == b"Do":
            found = ctm
    return found


def _wide_image_artifact() -> SignatureArtifact:
    buf = BytesIO()
    Image.new("RGBA", (400, 120), (0, 0, 0, 255)).save(buf, format="PNG")
    return SignatureArtifact(
        artifact_id="a-img", owner_id="u1", name="Scan", kind=ArtifactKind.DRAWN,
        metadata=ArtifactMetadata(full_name="Alice Example"), image_png=buf.getvalue(),
    )


def _register(documents, tmp_path, doc_id: str, rotation: int) -> None:
    upload = write_pdf(tmp_path / f"{doc_id}.pdf", [(612.0, 792.0, rotation)])
    documents.add(doc_id=doc_id, owner_id="u1", original_name=f"{doc_id}.pdf",
                  file_path=str(upload), page_count=1)


def test_image_on_quarter_turned_page_is_drawn_upright(env, tmp_path) -> None:
    documents, _, store, _ = env
    _register(documents, tmp_path, "rot", 90)
    # native rect of a 200x60 band as the viewer shows it on the turned page
    native = Rect(100.0, 492.0, 60.0, 200.0)

    revision = asyncio.run(store.stamp(
        documents.get("rot"), Page(document_id="rot", number=1, width=612.0, height=792.0),
        _wide_image_artifact(), native,
    ))

    a, b, c, d, e, f = _image_matrix(revision.file_path)
    # image x axis runs up the unrotated page (right on screen), full 200pt
    assert (a, b) == (pytest.approx(0.0, abs=1e-3), pytest.approx(200.0, abs=1e-3))
    assert (c, d) == (pytest.approx(-60.0, abs=1e-3), pytest.approx(0.0, abs=1e-3))
    # footprint stays inside the native rect (x 100..160, y 100..300 bottom-up)
    assert (e, f) == (pytest.approx(160.0, abs=1e-3), pytest.approx(100.0, abs=1e-3))
    assert PdfReader(revision.file_path).pages[0].rotation == 90


def test_image_on_unrotated_page_has_no_rotation_terms(env, tmp_path) -> None:
    documents, _, store, _ = env
    _register(documents, tmp_path, "flat", 0)

    revision = asyncio.run(store.stamp(
        documents.get("flat"), Page(document_id="flat", number=1, width=612.0, height=792.0),
        _wide_image_artifact(), Rect(100.0, 100.0, 200.0, 60.0),
    ))

    a, b, c, d, e, f = _image_matrix(revision.file_path)
    assert (a, d) == (pytest.approx(200.0, abs=1e-3), pytest.approx(60.0, abs=1e-3))
    assert (b, c) == (pytest.approx(0.0, abs=1e-3), pytest.approx(0.0, abs=1e-3))
    assert (e, f) == (pytest.approx(100.0, abs=1e-3), pytest.approx(632.0, abs=1e-3))
