"""Data models supporting the tile-collapse solver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Tuple, Union

Coordinate = Tuple[int, int]


@dataclass(frozen=True)
class Uncollapsed:
    """A cell that may still become any of ``possibilities``."""

    possibilities: FrozenSet[str]

    @property
    def is_contradiction(self) -> bool:
        return not self.possibilities


@dataclass(frozen=True)
class Collapsed:
    """A cell fixed to a single tile."""

    tile: str

    @property
    def possibilities(self) -> FrozenSet[str]:
        return frozenset((self.tile,))

    @property
    def is_contradiction(self) -> bool:
        return False


CellState = Union[Uncollapsed, Collapsed]


@dataclass
class Cell:
    """Represents one grid position and its current knowledge."""

    state: CellState

    @property
    def collapsed(self) -> bool:
        return isinstance(self.state, Collapsed)

    @property
    def possibilities(self) -> FrozenSet[str]:
        return self.state.possibilities

    @property
    def tile(self) -> str | None:
        if isinstance(self.state, Collapsed):
            return self.state.tile
        return None

    @property
    def entropy(self) -> int:
        """Number of remaining candidates (lower = more constrained)."""
        return len(self.state.possibilities)


@dataclass(frozen=True)
class Decoration:
    """A decoration marker emitted on top of a finished cell."""

    x: int
    y: int
    marker: str
    tile: str
