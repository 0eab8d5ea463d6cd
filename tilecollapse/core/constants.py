"""Shared constants and enumerations for the tile-collapse solver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Direction(str, Enum):
    """Neighbour directions on the grid, in scan order."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def offset(self) -> Tuple[int, int]:
        return _OFFSETS[self]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]


_OFFSETS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

_OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

DIRECTIONS: Tuple[Direction, ...] = tuple(Direction)


class StepResult(str, Enum):
    """Outcome of a single solver step."""

    CONTINUING = "CONTINUING"
    COMPLETED = "COMPLETED"
    CONTRADICTION = "CONTRADICTION"


class SolverState(str, Enum):
    """Driver states of the collapse engine."""

    PROPAGATING = "PROPAGATING"
    SELECTING = "SELECTING"
    DONE = "DONE"
    CONTRADICTION = "CONTRADICTION"


@dataclass(frozen=True)
class Bounds:
    """Simple rectangle bounds helper, indexed by ``(x, y)``."""

    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    @property
    def center(self) -> Tuple[int, int]:
        return self.width // 2, self.height // 2

    @property
    def area(self) -> int:
        return self.width * self.height
