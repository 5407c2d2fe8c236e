# signature/logic/position_resolver.py
from __future__ import annotations

import logging

from ..exceptions.errors import InvalidPosition
from ..models.geometry import Rect
from ..models.page import Page
from ..models.position import FreeformPosition, GridPosition, PageSnapshot, Position
from .coordinate_mapper import CoordinateMapper

logger = logging.getLogger(__name__)


class PositionResolver:
    """
    Resolves a Position to a page-native rectangle.

    Grid positions scale their fractional rectangle by the page size. Freeform
    positions are mapped with the snapshot taken at commit time; if the page
    geometry no longer matches that snapshot the position is rejected instead
    of being recalculated.
    """

    def __init__(self, mapper: CoordinateMapper | None = None) -> None:
        self._mapper = mapper or CoordinateMapper()

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    @property
    def epsilon(self) -> float:
        return self._mapper.epsilon

    def resolve(self, position: Position, page: Page) -> Rect:
        if isinstance(position, GridPosition):
            return self._resolve_grid(position, page)
        if isinstance(position, FreeformPosition):
            return self._resolve_freeform(position, page)
        raise InvalidPosition(f"Unsupported position type {type(position).__name__}")

    def equivalent(self, a: Position, b: Position, page: Page) -> bool:
        """Two positions are equivalent if they resolve to the same rect within epsilon."""
        return self.resolve(a, page).approx_equals(self.resolve(b, page), self.epsilon)

    # ------------------------------------------------------------------ #
    @staticmethod
    def _resolve_grid(position: GridPosition, page: Page) -> Rect:
        frac = position.fraction_rect()
        return Rect(
            frac.x * page.width,
            frac.y * page.height,
            frac.width * page.width,
            frac.height * page.height,
        )

    def _resolve_freeform(self, position: FreeformPosition, page: Page) -> Rect:
        snap: PageSnapshot = position.snapshot
        if (abs(snap.native_width - page.width) > self.epsilon
                or abs(snap.native_height - page.height) > self.epsilon):
            logger.warning(
                "Stale freeform snapshot for %s: captured %.2fx%.2f, page is %.2fx%.2f",
                page.page_id, snap.native_width, snap.native_height, page.width, page.height,
            )
            raise InvalidPosition(
                f"Stale snapshot: page {page.page_id} changed size since the position was captured"
            )

        captured = snap.as_page(page.document_id, page.number)
        rendered = position.viewport_rect.moved_to(
            position.offset_x - snap.origin_x, position.offset_y - snap.origin_y
        )
        return self._mapper.rect_to_page_native(rendered, captured)
