"""Post-generation decoration pass.

Reads a finished grid and scatters markers (trees, cacti, snowmen) with a
per-tile probability. The grid is never written.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from ..core.models import Decoration
from ..engine.grid import TileGrid
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class DecorationRule:
    """Emit ``marker`` on a ``tile`` cell with the given probability."""

    tile: str
    marker: str
    probability: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError(
                f"Decoration probability for '{self.tile}' must be within [0, 1], got {self.probability}"
            )


class UniformSource(Protocol):
    def random(self) -> float:
        ...


LANDSCAPE_DECORATIONS: tuple = (
    DecorationRule(tile="snow", marker="snowman", probability=0.1),
    DecorationRule(tile="grass", marker="tree", probability=0.3),
    DecorationRule(tile="sand", marker="cactus", probability=0.1),
)


def index_rules(rules: Iterable[DecorationRule]) -> Dict[str, DecorationRule]:
    indexed: Dict[str, DecorationRule] = {}
    for rule in rules:
        if rule.tile in indexed:
            raise ValueError(f"Duplicate decoration rule for tile '{rule.tile}'")
        indexed[rule.tile] = rule
    return indexed


def decorate(
    grid: TileGrid,
    rules: Iterable[DecorationRule] | Mapping[str, DecorationRule] = LANDSCAPE_DECORATIONS,
    rng: Optional[UniformSource] = None,
) -> List[Decoration]:
    """Return the decorations for every collapsed cell, scanned row-major."""

    by_tile = dict(rules) if isinstance(rules, Mapping) else index_rules(rules)
    rng = rng or random.Random()
    placed: List[Decoration] = []
    for x, y in grid.coordinates():
        tile = grid.cells[y][x].tile
        if tile is None:
            continue
        rule = by_tile.get(tile)
        if rule is None:
            continue
        if rng.random() < rule.probability:
            placed.append(Decoration(x=x, y=y, marker=rule.marker, tile=tile))
    LOGGER.info("Placed %d decorations", len(placed))
    return placed
