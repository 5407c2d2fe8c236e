from __future__ import annotations

from dataclasses import dataclass, replace

VALID_ROTATIONS = (0, 90, 180, 270)


@dataclass(frozen=True)
class Page:
    """
    Geometry of one document page as supplied by the PDF renderer.

    ``width``/``height`` are the native (unrotated) page size in points,
    ``rotation`` is the clockwise display rotation and ``scale`` the number of
    rendered pixels per native unit in the current viewport.
    """
    document_id: str
    number: int          # 1-based
    width: float
    height: float
    rotation: int = 0
    scale: float = 1.0

    @property
    def page_id(self) -> str:
        return f"{self.document_id}:{self.number}"

    @property
    def is_sideways(self) -> bool:
        return self.rotation in (90, 270)

    @property
    def rendered_width(self) -> float:
        return (self.height if self.is_sideways else self.width) * self.scale

    @property
    def rendered_height(self) -> float:
        return (self.width if self.is_sideways else self.height) * self.scale

    def with_scale(self, scale: float) -> "Page":
        return replace(self, scale=scale)
