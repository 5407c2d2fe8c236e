from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .geometry import Rect


@dataclass(frozen=True)
class Revision:
    """One immutable state of a document after a mutation."""
    revision_id: str
    document_id: str
    number: int
    file_path: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Placement:
    """
    Committed signature position on one page, in page-native units
    (points, origin top-left).

    A move never edits a Placement: it creates a new one with a newer
    ``revision`` and ``supersedes`` pointing at the discarded one.
    """
    placement_id: str
    artifact_id: str
    document_id: str
    page_number: int
    rect: Rect
    revision: int
    supersedes: Optional[str] = None
    active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
