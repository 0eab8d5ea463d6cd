"""Deterministic adjacency validation for generated grids."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..core.exceptions import ValidationError
from ..utils.logger import get_logger
from .grid import TileGrid
from .rules import AdjacencyRules


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str]


class GridValidator:
    """Runs deterministic validation over the final grid."""

    def __init__(self, rules: AdjacencyRules) -> None:
        self.rules = rules

    def validate(self, grid: TileGrid, require_complete: bool = True) -> ValidationResult:
        try:
            if require_complete:
                self._check_complete(grid)
            self._check_tiles_known(grid)
            self._check_adjacency(grid)
        except ValidationError as exc:
            LOGGER.error("Validation failed: %s", exc)
            return ValidationResult(ok=False, messages=[str(exc)])
        return ValidationResult(ok=True, messages=[])

    def _check_complete(self, grid: TileGrid) -> None:
        for x, y in grid.coordinates():
            if not grid.cells[y][x].collapsed:
                raise ValidationError(f"Cell ({x},{y}) is not collapsed")

    def _check_tiles_known(self, grid: TileGrid) -> None:
        for x, y in grid.coordinates():
            tile = grid.cells[y][x].tile
            if tile is not None and tile not in self.rules:
                raise ValidationError(f"Unknown tile '{tile}' at ({x},{y})")

    def _check_adjacency(self, grid: TileGrid) -> None:
        for x, y in grid.coordinates():
            tile = grid.cells[y][x].tile
            if tile is None:
                continue
            for direction, nx, ny in grid.neighbors(x, y):
                neighbour = grid.cells[ny][nx].tile
                if neighbour is None:
                    continue
                if tile not in self.rules.allowed(neighbour, direction.opposite):
                    raise ValidationError(
                        f"'{tile}' at ({x},{y}) not allowed {direction.opposite.value} "
                        f"of '{neighbour}' at ({nx},{ny})"
                    )
