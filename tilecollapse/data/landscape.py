"""Reference terrain tileset: water, sand, grass, mountain and snow."""

from __future__ import annotations

from typing import Dict, Tuple

from ..engine.rules import AdjacencyRules


DEFAULT_WIDTH = 20
DEFAULT_HEIGHT = 15

TILE_TYPES: Tuple[str, ...] = ("water", "sand", "grass", "mountain", "snow")

# Terrain bands: each tile may only touch itself and its direct neighbours in
# the water -> sand -> grass -> mountain -> snow progression.
NEIGHBOURS: Dict[str, Tuple[str, ...]] = {
    "water": ("water", "sand"),
    "sand": ("water", "sand", "grass"),
    "grass": ("sand", "grass", "mountain"),
    "mountain": ("grass", "mountain", "snow"),
    "snow": ("mountain", "snow"),
}

# Spritesheet frame indices for renderers.
TILE_INDICES: Dict[str, int] = {
    "water": 56,
    "sand": 110,
    "grass": 40,
    "mountain": 165,
    "snow": 50,
}

DECORATION_INDICES: Dict[str, int] = {
    "snowman": 7,
    "tree": 103,
    "cactus": 53,
}


def landscape_rules() -> AdjacencyRules:
    return AdjacencyRules.uniform(TILE_TYPES, NEIGHBOURS)
