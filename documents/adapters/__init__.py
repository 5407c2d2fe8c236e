"""Adapters for external dependencies.

Provides abstraction layers for file storage (filesystem/cloud-agnostic).
"""

from documents.adapters.storage_adapter import StorageAdapter
from documents.adapters.filesystem_storage_adapter import FilesystemStorageAdapter

__all__ = [
    "StorageAdapter",
    "FilesystemStorageAdapter",
]
