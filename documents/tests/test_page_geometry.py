from __future__ import annotations

import os

import pytest

from conftest import write_pdf
from documents.logic.page_geometry import PypdfGeometryProvider
from documents.models.document_models import DocumentRecord
from signature.exceptions.errors import NotFound, TransientIO


def _record(path) -> DocumentRecord:
    return DocumentRecord(doc_id="d1", owner_id="u1", original_name=path.name, file_path=str(path), page_count=0)


def test_reads_sizes_and_rotation(tmp_path) -> None:
    pdf = write_pdf(tmp_path / "mixed.pdf", [(612.0, 792.0, 0), (612.0, 792.0, 90), (300.0, 200.0, 270)])
    geometry = PypdfGeometryProvider()
    doc = _record(pdf)

    assert geometry.page_count(doc) == 3

    first = geometry.page(doc, 1, scale=1.5)
    assert (first.width, first.height, first.rotation, first.scale) == (612.0, 792.0, 0, 1.5)

    sideways = geometry.page(doc, 2)
    assert sideways.rotation == 90
    assert (sideways.rendered_width, sideways.rendered_height) == (792.0, 612.0)

    assert geometry.page(doc, 3).rotation == 270


@pytest.mark.parametrize("number", [0, 2])
def test_page_outside_document_is_not_found(tmp_path, number: int) -> None:
    doc = _record(write_pdf(tmp_path / "one.pdf", [(612.0, 792.0, 0)]))
    with pytest.raises(NotFound):
        PypdfGeometryProvider().page(doc, number)


def test_unreadable_files_are_transient(tmp_path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"this is not a pdf")
    geometry = PypdfGeometryProvider()

    with pytest.raises(TransientIO):
        geometry.page_count(_record(broken))
    with pytest.raises(TransientIO):
        geometry.page_count(_record(tmp_path / "missing.pdf"))


def test_rewritten_file_replaces_cached_geometry(tmp_path) -> None:
    pdf = write_pdf(tmp_path / "grow.pdf", [(612.0, 792.0, 0)])
    geometry = PypdfGeometryProvider()
    doc = _record(pdf)
    assert geometry.page_count(doc) == 1

    write_pdf(pdf, [(612.0, 792.0, 0), (612.0, 792.0, 0)])
    stamp = pdf.stat().st_mtime + 10
    os.utime(pdf, (stamp, stamp))

    assert geometry.page_count(doc) == 2
    assert len(geometry._cache) == 1


def test_cache_evicts_least_recently_used_path(tmp_path) -> None:
    one = _record(write_pdf(tmp_path / "one.pdf", [(612.0, 792.0, 0)]))
    two = _record(write_pdf(tmp_path / "two.pdf", [(300.0, 200.0, 0), (300.0, 200.0, 0)]))
    geometry = PypdfGeometryProvider(max_entries=1)

    assert geometry.page_count(one) == 1
    assert geometry.page_count(two) == 2
    assert geometry.page_count(one) == 1
    assert len(geometry._cache) == 1
