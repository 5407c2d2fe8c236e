"""core/contracts/storage.py
========================

Storage/encoding contract: turns a placement request into a new document
revision. Owns all file-format and persistence concerns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from documents.models.document_models import DocumentRecord
    from signature.models.geometry import Rect
    from signature.models.page import Page
    from signature.models.placement import Revision
    from signature.models.signature_artifact import SignatureArtifact


class ISigningStore(ABC):
    """Asynchronous storage/encoding collaborator."""

    @abstractmethod
    async def stamp(
        self,
        document: "DocumentRecord",
        page: "Page",
        artifact: "SignatureArtifact",
        rect: "Rect",
        *,
        exclude: Iterable[str] = (),
    ) -> "Revision":
        """Write *artifact* into *rect* and return the new revision.

        Placements listed in *exclude* (ids) are left out of the new revision.
        Raises ``TransientIO`` on storage or encoding failure.
        """

    @abstractmethod
    async def restamp(self, document: "DocumentRecord", *, exclude: Iterable[str] = ()) -> "Revision":
        """Produce a new revision from the active placements minus *exclude*."""

    @abstractmethod
    async def discard(self, document: "DocumentRecord", revision: "Revision") -> None:
        """Delete *revision* again and restore the document's previous current file.

        Used when the placement belonging to a fresh revision cannot be recorded.
        Raises ``TransientIO`` if the rollback itself fails.
        """
