"""
Page geometry from the PDF itself (pypdf).

Only sizes and the /Rotate value are read; rasterising pages for display is
the viewer's job.
"""

from __future__ import annotations

import logging
from pathlib import Path
from collections import OrderedDict
from typing import List, Tuple

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from core.contracts.rendering import IPageGeometryProvider
from documents.models.document_models import DocumentRecord
from signature.exceptions.errors import InvalidPosition, NotFound, TransientIO
from signature.models.page import VALID_ROTATIONS, Page

logger = logging.getLogger(__name__)

# (width, height, rotation) per page
_Geometry = List[Tuple[float, float, int]]


class PypdfGeometryProvider(IPageGeometryProvider):
    """
    Reads media boxes once per file. The cache keeps one entry per path,
    replaced when the file's mtime changes, and evicts the least recently
    used path beyond *max_entries*.
    """

    def __init__(self, max_entries: int = 256) -> None:
        self._max_entries = max(1, max_entries)
        self._cache: "OrderedDict[str, Tuple[float, _Geometry]]" = OrderedDict()

    def page_count(self, document: DocumentRecord) -> int:
        return len(self._geometry(document.file_path))

    def page(self, document: DocumentRecord, number: int, *, scale: float = 1.0) -> Page:
        geometry = self._geometry(document.file_path)
        if not 1 <= number <= len(geometry):
            raise NotFound(
                f"Page {number} does not exist in document {document.doc_id} "
                f"({len(geometry)} pages)"
            )
        width, height, rotation = geometry[number - 1]
        return Page(
            document_id=document.doc_id,
            number=number,
            width=width,
            height=height,
            rotation=rotation,
            scale=scale,
        )

    # ------------------------------------------------------------------ #
    def _geometry(self, path: str) -> _Geometry:
        p = Path(path)
        try:
            key = str(p.resolve())
            mtime = p.stat().st_mtime
        except OSError as exc:
            raise TransientIO(f"Cannot access {path}: {exc}") from exc

        cached = self._cache.get(key)
        if cached is not None and cached[0] == mtime:
            self._cache.move_to_end(key)
            return cached[1]

        try:
            reader = PdfReader(str(p))
            geometry: _Geometry = []
            for page in reader.pages:
                box = page.mediabox
                rotation = int(page.rotation or 0) % 360
                if rotation not in VALID_ROTATIONS:
                    raise InvalidPosition(f"Unsupported page rotation {rotation} in {p.name}")
                geometry.append((float(box.width), float(box.height), rotation))
        except (OSError, PyPdfError) as exc:
            logger.warning("Failed to read page geometry of %s: %s", p, exc)
            raise TransientIO(f"Cannot read {p.name}: {exc}") from exc

        self._cache[key] = (mtime, geometry)
        self._cache.move_to_end(key)
        while len(self._cache) > self._max_entries:
            self._cache.popitem(last=False)
        return geometry
