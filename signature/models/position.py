# signature/models/position.py
"""
Position sum type: a placement is either a grid cell or a free-form rectangle.

A FreeformPosition keeps the page snapshot of the moment it was captured, so
it can be resolved later without looking at the live viewport.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Union

from ..exceptions.errors import InvalidPosition
from .geometry import Point, Rect
from .grid import DEFAULT_LAYOUT, GridCell, GridLayout
from .page import VALID_ROTATIONS, Page


@dataclass(frozen=True)
class PageSnapshot:
    """Viewport state of a page at capture time."""
    scale: float
    rotation: int
    native_width: float
    native_height: float
    origin_x: float = 0.0   # page top-left inside the viewport, in pixels
    origin_y: float = 0.0

    def __post_init__(self) -> None:
        values = (self.scale, self.native_width, self.native_height, self.origin_x, self.origin_y)
        if not all(math.isfinite(v) for v in values):
            raise InvalidPosition("Snapshot values must be finite")
        if self.scale <= 0 or self.native_width <= 0 or self.native_height <= 0:
            raise InvalidPosition("Snapshot scale and page size must be positive")
        if self.rotation not in VALID_ROTATIONS:
            raise InvalidPosition(f"Unsupported rotation {self.rotation}")

    @classmethod
    def of(cls, page: Page, origin: Point = Point(0.0, 0.0)) -> "PageSnapshot":
        return cls(
            scale=page.scale,
            rotation=page.rotation,
            native_width=page.width,
            native_height=page.height,
            origin_x=origin.x,
            origin_y=origin.y,
        )

    @property
    def origin(self) -> Point:
        return Point(self.origin_x, self.origin_y)

    def as_page(self, document_id: str = "", number: int = 1) -> Page:
        """Page geometry as it was when the snapshot was taken."""
        return Page(
            document_id=document_id,
            number=number,
            width=self.native_width,
            height=self.native_height,
            rotation=self.rotation,
            scale=self.scale,
        )


@dataclass(frozen=True)
class GridPosition:
    row: int
    col: int
    layout: GridLayout = field(default=DEFAULT_LAYOUT)

    @classmethod
    def of(cls, cell: "GridCell | str", layout: GridLayout = DEFAULT_LAYOUT) -> "GridPosition":
        row, col = layout.cell_index(GridCell.parse(cell))
        return cls(row, col, layout)

    def fraction_rect(self) -> Rect:
        return self.layout.fraction_rect(self.row, self.col)


@dataclass(frozen=True)
class FreeformPosition:
    """Rectangle in viewport pixels plus the snapshot needed to resolve it."""
    offset_x: float
    offset_y: float
    width: float
    height: float
    snapshot: PageSnapshot

    def __post_init__(self) -> None:
        values = (self.offset_x, self.offset_y, self.width, self.height)
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
            raise InvalidPosition("Freeform coordinates must be finite numbers")
        if self.width <= 0 or self.height <= 0:
            raise InvalidPosition("Freeform width and height must be positive")

    @classmethod
    def from_rect(cls, rect: Rect, snapshot: PageSnapshot) -> "FreeformPosition":
        return cls(rect.x, rect.y, rect.width, rect.height, snapshot)

    @property
    def viewport_rect(self) -> Rect:
        return Rect(self.offset_x, self.offset_y, self.width, self.height)


Position = Union[GridPosition, FreeformPosition]
