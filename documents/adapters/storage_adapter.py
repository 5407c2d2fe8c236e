"""Storage adapter abstraction.

Defines interface for document file storage operations.
Allows switching between local filesystem, S3, Azure Blob, etc.
"""

from __future__ import annotations
from abc import ABC, abstractmethod


class StorageAdapter(ABC):
    """Abstract storage adapter for document content."""

    @abstractmethod
    def save_original(self, *, doc_id: str, source_path: str) -> str:
        """
        Persist an uploaded file as the immutable original of a document.

        Args:
            doc_id: Document ID
            source_path: Path to the uploaded file

        Returns:
            Path/URI to stored file
        """
        raise NotImplementedError

    @abstractmethod
    def save_revision(self, *, doc_id: str, data: bytes, filename: str) -> str:
        """
        Persist the bytes of a signed revision.

        Args:
            doc_id: Document ID
            data: Encoded PDF
            filename: Target file name (see RevisionSuffixStrategy)

        Returns:
            Path/URI to stored PDF
        """
        raise NotImplementedError

    @abstractmethod
    def delete_revision(self, *, doc_id: str, filename: str) -> bool:
        """
        Remove a stored revision. Originals are never deleted.

        Returns:
            True if a file was removed
        """
        raise NotImplementedError
