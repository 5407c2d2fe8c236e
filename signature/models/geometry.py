"""
Plain geometry values shared by the placement engine.

All rectangles are axis-aligned with a top-left origin and y growing downward,
both in viewport pixels and in page-native units.
"""
from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def offset(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def approx_equals(self, other: "Point", eps: float = 1e-6) -> bool:
        return abs(self.x - other.x) <= eps and abs(self.y - other.y) <= eps


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, a: Point, b: Point) -> "Rect":
        """Normalised rectangle spanned by two opposite corners."""
        left, right = sorted((a.x, b.x))
        top, bottom = sorted((a.y, b.y))
        return cls(left, top, right - left, bottom - top)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y)

    @property
    def far_corner(self) -> Point:
        return Point(self.right, self.bottom)

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2.0, self.y + self.height / 2.0)

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.width, self.height))

    def contains(self, p: Point) -> bool:
        return self.x <= p.x <= self.right and self.y <= p.y <= self.bottom

    def moved_to(self, x: float, y: float) -> "Rect":
        return Rect(x, y, self.width, self.height)

    def fits_inside(self, width: float, height: float, eps: float = 0.0) -> bool:
        """True if the rect lies within ``[0, width] x [0, height]``."""
        return (
            self.x >= -eps
            and self.y >= -eps
            and self.right <= width + eps
            and self.bottom <= height + eps
        )

    def approx_equals(self, other: "Rect", eps: float = 1e-6) -> bool:
        return (
            abs(self.x - other.x) <= eps
            and abs(self.y - other.y) <= eps
            and abs(self.width - other.width) <= eps
            and abs(self.height - other.height) <= eps
        )

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
