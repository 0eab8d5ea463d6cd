"""Lowest-entropy cell selection."""

from __future__ import annotations

from typing import Optional

from ..core.models import Coordinate
from .grid import TileGrid


def find_lowest_entropy_cell(grid: TileGrid) -> Optional[Coordinate]:
    """Return the uncollapsed cell with the fewest candidates.

    Ties go to the first cell in row-major order. ``None`` means every cell
    is collapsed.
    """

    best: Optional[Coordinate] = None
    best_entropy = len(grid.alphabet) + 1
    for y, row in enumerate(grid.cells):
        for x, cell in enumerate(row):
            if cell.collapsed:
                continue
            if cell.entropy < best_entropy:
                best_entropy = cell.entropy
                best = (x, y)
    return best
