from .errors import (
    ErrorKind,
    Forbidden,
    InvalidPosition,
    NotFound,
    OutOfBounds,
    PlacementError,
    TransientIO,
)

__all__ = [
    "ErrorKind",
    "Forbidden",
    "InvalidPosition",
    "NotFound",
    "OutOfBounds",
    "PlacementError",
    "TransientIO",
]
