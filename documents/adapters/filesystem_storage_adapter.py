"""Filesystem implementation of StorageAdapter.

Layout::

    <root>/<doc_id>/original/<upload name>
    <root>/<doc_id>/revisions/<stem>_signed_r<N>.pdf
"""

from __future__ import annotations
from pathlib import Path
import logging
import os
import shutil

from documents.adapters.storage_adapter import StorageAdapter

logger = logging.getLogger(__name__)


class FilesystemStorageAdapter(StorageAdapter):
    """Local filesystem implementation of StorageAdapter."""

    def __init__(self, root_path: str | Path):
        self._root = Path(root_path)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def save_original(self, *, doc_id: str, source_path: str) -> str:
        original_dir = self._root / doc_id / "original"
        original_dir.mkdir(parents=True, exist_ok=True)

        dest_path = original_dir / Path(source_path).name
        shutil.copy2(source_path, dest_path)
        return str(dest_path)

    def save_revision(self, *, doc_id: str, data: bytes, filename: str) -> str:
        revision_dir = self._root / doc_id / "revisions"
        revision_dir.mkdir(parents=True, exist_ok=True)

        dest_path = revision_dir / filename
        # atomic replace
        tmp_path = dest_path.with_suffix(dest_path.suffix + ".part")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, dest_path)
        logger.debug("Stored revision %s (%d bytes)", dest_path, len(data))
        return str(dest_path)

    def delete_revision(self, *, doc_id: str, filename: str) -> bool:
        path = self._root / doc_id / "revisions" / Path(filename).name
        if not path.is_file():
            return False
        path.unlink()
        logger.debug("Deleted revision %s", path)
        return True
