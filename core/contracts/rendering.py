"""core/contracts/rendering.py
==========================

PDF renderer contract. The signing core only reads page geometry; rendering
pixels into the viewport is the renderer's own business.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from documents.models.document_models import DocumentRecord
    from signature.models.page import Page


class IPageGeometryProvider(ABC):
    """Supplies page geometry (native size, rotation) for a document."""

    @abstractmethod
    def page_count(self, document: "DocumentRecord") -> int:
        """Number of pages in *document*."""

    @abstractmethod
    def page(self, document: "DocumentRecord", number: int, *, scale: float = 1.0) -> "Page":
        """Geometry of the 1-based page *number*; raises NotFound for unknown pages."""
