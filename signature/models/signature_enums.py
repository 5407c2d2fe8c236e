# signature/models/signature_enums.py
from __future__ import annotations
from enum import Enum


class ArtifactKind(str, Enum):
    """How a signature artifact was created."""
    DRAWN = "drawn"
    TYPED = "typed"


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class OutcomeStatus(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"
