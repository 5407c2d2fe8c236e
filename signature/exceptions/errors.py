"""Placement engine exceptions.

Every error carries an ``ErrorKind`` so callers (UI layer, batch outcomes) can
render a typed failure without inspecting exception classes.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    OUT_OF_BOUNDS = "OutOfBounds"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    TRANSIENT_IO = "TransientIO"
    INVALID_POSITION = "InvalidPosition"


class PlacementError(Exception):
    """Base exception for the signing core."""

    kind: ErrorKind = ErrorKind.TRANSIENT_IO

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class OutOfBounds(PlacementError):
    """Resolved coordinates exceed the page bounds."""
    kind = ErrorKind.OUT_OF_BOUNDS


class NotFound(PlacementError):
    """Artifact, document, page or placement is missing."""
    kind = ErrorKind.NOT_FOUND


class Forbidden(PlacementError):
    """Ownership check failed."""
    kind = ErrorKind.FORBIDDEN


class TransientIO(PlacementError):
    """Storage or rendering collaborator failed."""
    kind = ErrorKind.TRANSIENT_IO


class InvalidPosition(PlacementError):
    """Malformed grid or freeform data."""
    kind = ErrorKind.INVALID_POSITION
