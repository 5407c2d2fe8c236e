"""Repository layer for documents module.

Provides data access abstractions.
"""

from documents.repository.document_repository import DocumentRepository
from documents.repository.sqlite_document_repository import SQLiteDocumentRepository

__all__ = [
    "DocumentRepository",
    "SQLiteDocumentRepository",
]
