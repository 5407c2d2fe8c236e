"""
Document domain models for the Documents feature.

Keeps the data layer independent from UI and storage details.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class DocumentRecord:
    doc_id: str
    owner_id: str
    original_name: str
    file_path: str                          # original upload, never modified
    page_count: int
    current_revision: int = 0               # 0 = nothing stamped yet
    current_file_path: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def latest_path(self) -> str:
        """Path of the newest revision, or the original upload."""
        return self.current_file_path or self.file_path

