"""Constraint propagation from collapsed neighbours into a single cell."""

from __future__ import annotations

from typing import FrozenSet

from .grid import TileGrid
from .rules import AdjacencyRules


def update_constraints(grid: TileGrid, rules: AdjacencyRules, x: int, y: int) -> FrozenSet[str]:
    """Narrow the cell at ``(x, y)`` against every collapsed neighbour.

    A collapsed neighbour in direction ``d`` contributes
    ``rules.allowed(neighbour_tile, d.opposite)``: what it permits on the side
    facing this cell. Only the target cell is written; an empty result is a
    contradiction for the caller to report.
    """

    cell = grid.cell(x, y)
    if cell.collapsed:
        return cell.possibilities

    candidates = cell.possibilities
    for direction, nx, ny in grid.neighbors(x, y):
        neighbour = grid.cells[ny][nx]
        if neighbour.tile is None:
            continue
        candidates = candidates & rules.allowed(neighbour.tile, direction.opposite)
        if not candidates:
            break
    return grid.restrict(x, y, candidates)
