"""Grid representation: the per-cell possibility store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..core.constants import DIRECTIONS, Bounds, Direction
from ..core.exceptions import CellStateError, ConfigurationError, OutOfBoundsError
from ..core.models import Cell, Collapsed, Coordinate, Uncollapsed
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


@dataclass
class GridConfig:
    """Dimensions and alphabet of one grid."""

    width: int
    height: int
    alphabet: Sequence[str]

    def bounds(self) -> Bounds:
        return Bounds(width=self.width, height=self.height)


class TileGrid:
    """Fixed ``width x height`` matrix of cells indexed by ``(x, y)``.

    Every cell starts with the full alphabet. Mutations only ever shrink a
    cell's candidate set; collapsing fixes it to a single tile.
    """

    def __init__(self, config: GridConfig) -> None:
        if config.width <= 0 or config.height <= 0:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {config.width}x{config.height}"
            )
        if not config.alphabet:
            raise ConfigurationError("Grid alphabet must not be empty")
        self.config = config
        self.bounds = config.bounds()
        self.alphabet: Tuple[str, ...] = tuple(config.alphabet)
        full = frozenset(self.alphabet)
        self.cells: List[List[Cell]] = [
            [Cell(Uncollapsed(full)) for _ in range(self.bounds.width)]
            for _ in range(self.bounds.height)
        ]
        self._collapsed_count = 0

    @property
    def width(self) -> int:
        return self.bounds.width

    @property
    def height(self) -> int:
        return self.bounds.height

    # ------------------------------------------------------------------
    # Cell manipulation
    # ------------------------------------------------------------------
    def restrict(self, x: int, y: int, tiles: Iterable[str]) -> frozenset:
        """Intersect the cell's candidates with ``tiles`` and return the result."""

        cell = self.cell(x, y)
        if cell.collapsed:
            return cell.possibilities
        narrowed = cell.possibilities & frozenset(tiles)
        if narrowed != cell.possibilities:
            cell.state = Uncollapsed(narrowed)
            if not narrowed:
                LOGGER.debug("Cell (%s,%s) ran out of candidates", x, y)
        return narrowed

    def collapse(self, x: int, y: int, tile: str) -> None:
        cell = self.cell(x, y)
        if cell.collapsed:
            raise CellStateError(f"Cell {(x, y)} is already collapsed to '{cell.tile}'")
        if tile not in cell.possibilities:
            raise CellStateError(
                f"Cannot collapse {(x, y)} to '{tile}'; candidates are {sorted(cell.possibilities)}"
            )
        cell.state = Collapsed(tile)
        self._collapsed_count += 1
        LOGGER.debug("Collapsed (%s,%s) -> %s", x, y, tile)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def cell(self, x: int, y: int) -> Cell:
        if not self.bounds.contains(x, y):
            raise OutOfBoundsError(
                f"Coordinate {(x, y)} outside {self.bounds.width}x{self.bounds.height} grid"
            )
        return self.cells[y][x]

    def is_collapsed(self, x: int, y: int) -> bool:
        return self.cell(x, y).collapsed

    def tile_at(self, x: int, y: int) -> Optional[str]:
        return self.cell(x, y).tile

    def possibilities_at(self, x: int, y: int) -> frozenset:
        return self.cell(x, y).possibilities

    def neighbors(self, x: int, y: int) -> Iterator[Tuple[Direction, int, int]]:
        for direction in DIRECTIONS:
            dx, dy = direction.offset
            nx, ny = x + dx, y + dy
            if self.bounds.contains(nx, ny):
                yield direction, nx, ny

    def coordinates(self) -> Iterator[Coordinate]:
        """Row-major scan: ``y`` outer, ``x`` inner."""
        for y in range(self.bounds.height):
            for x in range(self.bounds.width):
                yield x, y

    @property
    def collapsed_count(self) -> int:
        return self._collapsed_count

    @property
    def is_complete(self) -> bool:
        return self._collapsed_count == self.bounds.area

    def contradictions(self) -> List[Coordinate]:
        return [
            (x, y) for x, y in self.coordinates() if self.cells[y][x].state.is_contradiction
        ]

    def tile_counts(self) -> Dict[str, int]:
        counts = {tile: 0 for tile in self.alphabet}
        for row in self.cells:
            for cell in row:
                if cell.tile is not None:
                    counts[cell.tile] += 1
        return counts

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def to_jsonable(self) -> dict:
        """Width, height, alphabet and one tile index (or ``None``) per cell."""

        index = {tile: position for position, tile in enumerate(self.alphabet)}
        return {
            "width": self.bounds.width,
            "height": self.bounds.height,
            "tiles": list(self.alphabet),
            "cells": [
                [None if cell.tile is None else index[cell.tile] for cell in row]
                for row in self.cells
            ],
        }
