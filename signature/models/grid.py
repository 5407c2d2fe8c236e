# signature/models/grid.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..exceptions.errors import InvalidPosition
from .geometry import Rect


class GridCell(str, Enum):
    """The nine named cells of the default 3 x 3 placement grid."""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_CENTER = "middle-center"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def row(self) -> int:
        return ("top", "middle", "bottom").index(self.value.split("-")[0])

    @property
    def col(self) -> int:
        return ("left", "center", "right").index(self.value.split("-")[1])

    @classmethod
    def parse(cls, value: "GridCell | str") -> "GridCell":
        try:
            return cls(value)
        except ValueError:
            raise InvalidPosition(f"Unknown grid cell {value!r}") from None


@dataclass(frozen=True)
class GridLayout:
    """
    Maps grid cells to fractional page rectangles.

    Cells share one fractional size; the first and last row/column touch the
    margin and the rest are spread evenly in between. With the defaults the
    top-left cell is (0.05, 0.05, 0.25, 0.10).
    """
    rows: int = 3
    cols: int = 3
    margin: float = 0.05
    cell_width: float = 0.25
    cell_height: float = 0.10

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise InvalidPosition("Grid needs at least one row and one column")
        if not (0.0 < self.cell_width <= 1.0 and 0.0 < self.cell_height <= 1.0):
            raise InvalidPosition("Grid cell fractions must be in (0, 1]")
        if self.margin < 0.0:
            raise InvalidPosition("Grid margin must not be negative")
        # every cell must stay inside the page
        if 2 * self.margin + self.cell_width > 1.0 + 1e-12:
            raise InvalidPosition("Grid cells would exceed the page width")
        if 2 * self.margin + self.cell_height > 1.0 + 1e-12:
            raise InvalidPosition("Grid cells would exceed the page height")

    @classmethod
    def from_config(cls, cfg) -> "GridLayout":
        """Build from a ``PlacementConfig``-like object."""
        return cls(
            rows=int(cfg.grid_rows),
            cols=int(cfg.grid_cols),
            margin=float(cfg.grid_margin),
            cell_width=float(cfg.cell_width),
            cell_height=float(cfg.cell_height),
        )

    @staticmethod
    def _spread(index: int, count: int, margin: float, size: float) -> float:
        if count == 1:
            return (1.0 - size) / 2.0
        step = (1.0 - 2 * margin - size) / (count - 1)
        return margin + index * step

    def fraction_rect(self, row: int, col: int) -> Rect:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise InvalidPosition(f"Grid cell ({row}, {col}) outside {self.rows}x{self.cols} grid")
        return Rect(
            self._spread(col, self.cols, self.margin, self.cell_width),
            self._spread(row, self.rows, self.margin, self.cell_height),
            self.cell_width,
            self.cell_height,
        )

    def cell_index(self, cell: GridCell) -> Tuple[int, int]:
        """Row/column of a named cell; named cells need a 3 x 3 layout."""
        if (self.rows, self.cols) != (3, 3):
            raise InvalidPosition(f"Named cell {cell.value} requires a 3x3 grid")
        return cell.row, cell.col


DEFAULT_LAYOUT = GridLayout()
