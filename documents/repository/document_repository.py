"""Document repository protocol (interface).

Defines the contract for document data access without implementation details.
"""

from __future__ import annotations
from typing import Protocol, List, Optional

from documents.models.document_models import DocumentRecord
from signature.models.placement import Revision


class DocumentRepository(Protocol):
    """Protocol for document data access."""

    # ===== Query Operations =====

    def get(self, doc_id: str) -> Optional[DocumentRecord]:
        """
        Get single document by ID.

        Args:
            doc_id:  Document ID

        Returns:
            DocumentRecord or None
        """
        ...

    def list_for_owner(self, owner_id: str) -> List[DocumentRecord]:
        """Documents uploaded by *owner_id*, oldest first."""
        ...

    def revisions(self, doc_id: str) -> List[Revision]:
        """Revision history of a document, ascending by number."""
        ...

    # ===== Mutations =====

    def new_id(self) -> str:
        """Allocate a fresh document id (no row is written)."""
        ...

    def add(
            self,
            *,
            doc_id: str,
            owner_id: str,
            original_name: str,
            file_path: str,
            page_count: int,
    ) -> DocumentRecord:
        """
        Register an uploaded file.

        Args:
            doc_id: Id from new_id()
            owner_id: Uploading principal
            original_name: File name as uploaded
            file_path: Stored copy of the upload
            page_count: Number of pages

        Returns:
            The new DocumentRecord (revision 0)
        """
        ...

    def record_revision(self, doc_id: str, *, number: int, file_path: str) -> Revision:
        """Append a revision and make it the document's current file."""
        ...

    def drop_revision(self, doc_id: str, number: int) -> None:
        """
        Delete revision *number* and fall back to the newest remaining one
        (or the original upload when none is left).
        """
        ...
