# signature/logic/coordinate_mapper.py
"""
Conversions between the three coordinate spaces of a displayed page:

* viewport pixels       - pointer coordinates in the viewer
* rendered-page pixels  - same, relative to the page's top-left corner
* page-native units     - unrotated page coordinates (points, origin top-left)

Rotation is applied about the rendered page center before scaling. Because
only quarter turns are allowed the transforms are exact (no trigonometry).
"""
from __future__ import annotations

import logging
from typing import Optional

from ..exceptions.errors import InvalidPosition, OutOfBounds
from ..models.geometry import Point, Rect
from ..models.page import VALID_ROTATIONS, Page

logger = logging.getLogger(__name__)


def _rotate_cw(dx: float, dy: float, rotation: int) -> tuple[float, float]:
    """Rotate a center-relative vector clockwise (screen axes, y down)."""
    if rotation == 0:
        return dx, dy
    if rotation == 90:
        return -dy, dx
    if rotation == 180:
        return -dx, -dy
    return dy, -dx  # 270


def _rotate_ccw(dx: float, dy: float, rotation: int) -> tuple[float, float]:
    """Inverse of :func:`_rotate_cw`."""
    if rotation == 0:
        return dx, dy
    if rotation == 90:
        return dy, -dx
    if rotation == 180:
        return -dx, -dy
    return -dy, dx  # 270


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(v, hi))


class CoordinateMapper:
    """Stateless mapper; *epsilon* is the tolerance (in native units / pixels) for edge checks."""

    def __init__(self, epsilon: float = 1e-6) -> None:
        self.epsilon = float(epsilon)

    # ------------------------------------------------------------------ #
    #  Scale
    # ------------------------------------------------------------------ #
    @staticmethod
    def scale_for_render(page: Page, rendered_width: float, rendered_height: Optional[float] = None) -> float:
        """
        Rendered pixel size / native size. Call again whenever zoom or the
        container size changes. For sideways pages the axes are swapped first.
        """
        native_w = page.height if page.is_sideways else page.width
        native_h = page.width if page.is_sideways else page.height
        if rendered_width <= 0 or native_w <= 0:
            raise InvalidPosition("Rendered and native sizes must be positive")
        scale = rendered_width / native_w
        if rendered_height is not None:
            # fit inside the container
            scale = min(scale, rendered_height / native_h)
        return scale

    @staticmethod
    def _validate(page: Page, scale: float) -> None:
        if page.rotation not in VALID_ROTATIONS:
            raise InvalidPosition(f"Unsupported rotation {page.rotation}")
        if scale <= 0 or page.width <= 0 or page.height <= 0:
            raise InvalidPosition("Page size and scale must be positive")

    # ------------------------------------------------------------------ #
    #  Points
    # ------------------------------------------------------------------ #
    def to_page_native(
        self,
        point: Point,
        page: Page,
        viewport_scale: Optional[float] = None,
        *,
        clamp: bool = False,
    ) -> Point:
        """
        Rendered-page pixels -> page-native units.

        A point outside the rendered page raises ``OutOfBounds`` unless
        *clamp* is set (used while a drag is in progress).
        """
        scale = page.scale if viewport_scale is None else viewport_scale
        self._validate(page, scale)

        rw = (page.height if page.is_sideways else page.width) * scale
        rh = (page.width if page.is_sideways else page.height) * scale
        eps = self.epsilon * scale
        if not clamp and not (-eps <= point.x <= rw + eps and -eps <= point.y <= rh + eps):
            raise OutOfBounds(
                f"Point ({point.x:.2f}, {point.y:.2f}) outside rendered page "
                f"{rw:.2f}x{rh:.2f} of {page.page_id}"
            )

        dx, dy = _rotate_ccw(point.x - rw / 2.0, point.y - rh / 2.0, page.rotation)
        x = page.width / 2.0 + dx / scale
        y = page.height / 2.0 + dy / scale
        return Point(_clamp(x, 0.0, page.width), _clamp(y, 0.0, page.height))

    def to_viewport(self, point: Point, page: Page, viewport_scale: Optional[float] = None) -> Point:
        """Page-native units -> rendered-page pixels."""
        scale = page.scale if viewport_scale is None else viewport_scale
        self._validate(page, scale)

        rw = (page.height if page.is_sideways else page.width) * scale
        rh = (page.width if page.is_sideways else page.height) * scale
        dx, dy = _rotate_cw(point.x - page.width / 2.0, point.y - page.height / 2.0, page.rotation)
        return Point(rw / 2.0 + dx * scale, rh / 2.0 + dy * scale)

    # ------------------------------------------------------------------ #
    #  Viewport <-> rendered page
    # ------------------------------------------------------------------ #
    @staticmethod
    def viewport_to_rendered(point: Point, origin: Point) -> Point:
        return Point(point.x - origin.x, point.y - origin.y)

    @staticmethod
    def rendered_to_viewport(point: Point, origin: Point) -> Point:
        return Point(point.x + origin.x, point.y + origin.y)

    @staticmethod
    def rendered_bounds(page: Page, origin: Point = Point(0.0, 0.0)) -> Rect:
        """The rendered page area in viewport pixels."""
        return Rect(origin.x, origin.y, page.rendered_width, page.rendered_height)

    # ------------------------------------------------------------------ #
    #  Rectangles
    # ------------------------------------------------------------------ #
    def rect_to_page_native(
        self,
        rect: Rect,
        page: Page,
        viewport_scale: Optional[float] = None,
        *,
        clamp: bool = False,
    ) -> Rect:
        """Rendered-page rect -> native rect; corners are re-normalised after rotation."""
        a = self.to_page_native(rect.origin, page, viewport_scale, clamp=clamp)
        b = self.to_page_native(rect.far_corner, page, viewport_scale, clamp=clamp)
        return Rect.from_corners(a, b)

    def rect_to_viewport(self, rect: Rect, page: Page, viewport_scale: Optional[float] = None) -> Rect:
        a = self.to_viewport(rect.origin, page, viewport_scale)
        b = self.to_viewport(rect.far_corner, page, viewport_scale)
        return Rect.from_corners(a, b)
