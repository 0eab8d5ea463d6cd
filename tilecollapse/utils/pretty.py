"""Pretty-print helpers for tile grids."""

from __future__ import annotations

import sys
from collections import Counter
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from ..engine.generator import GenerationResult
    from ..engine.grid import TileGrid


UNDECIDED = "?"
CONTRADICTION = "!"


def tile_symbols(alphabet) -> Dict[str, str]:
    """One-character symbol per tile: first free letter of its name."""
    symbols: Dict[str, str] = {}
    used = {UNDECIDED, CONTRADICTION}
    for tile in alphabet:
        name = str(tile)
        candidates = [ch for ch in name.upper() + name.lower() if ch.isalnum()]
        symbol = next((ch for ch in candidates if ch not in used), None)
        if symbol is None:
            symbol = next(ch for ch in "0123456789#@%&*+=" if ch not in used)
        symbols[tile] = symbol
        used.add(symbol)
    return symbols


def cell_symbol(cell, symbols: Dict[str, str]) -> str:
    if cell.tile is not None:
        return symbols[cell.tile]
    if cell.state.is_contradiction:
        return CONTRADICTION
    return UNDECIDED


def format_grid(grid: TileGrid, symbols: Optional[Dict[str, str]] = None) -> str:
    symbols = symbols or tile_symbols(grid.alphabet)
    width = grid.width
    header_cells = [f"{x:>2}" for x in range(width)]
    lines = ["    " + " ".join(header_cells)]
    lines.append("    " + "-" * (3 * width - 1))
    for y in range(grid.height):
        row_cells = [cell_symbol(grid.cells[y][x], symbols) for x in range(width)]
        row_render = " ".join(f"{symbol:>2}" for symbol in row_cells)
        lines.append(f"{y:>2} | {row_render}")
    return "\n".join(lines)


def pretty_print_grid(grid: TileGrid, *, label: str | None = None, stream=None) -> None:
    """Print the tile grid in a human-friendly format."""

    stream = stream or sys.stdout
    if label:
        print(label, file=stream)
    print(format_grid(grid), file=stream)


def print_generation_stats(result: GenerationResult, *, stream=None) -> None:
    """Print grid + legend + tile distribution for a finished landscape."""

    stream = stream or sys.stdout
    grid = result.grid
    symbols = tile_symbols(grid.alphabet)
    print(format_grid(grid, symbols), file=stream)

    total_cells = grid.bounds.area
    print(file=stream)
    print("--- Tiles ---", file=stream)
    for tile, count in grid.tile_counts().items():
        print(
            f"  {symbols[tile]} {tile:<12} {count:>4} ({count / total_cells * 100:5.1f}%)",
            file=stream,
        )

    if result.decorations:
        markers = Counter(item.marker for item in result.decorations)
        print(file=stream)
        print("--- Decorations ---", file=stream)
        for marker, count in sorted(markers.items()):
            print(f"  {marker:<14} {count:>4}", file=stream)

    print(file=stream)
    print("--- Run ---", file=stream)
    print(f"  Size:          {grid.width} x {grid.height} ({total_cells} cells)", file=stream)
    print(f"  Attempts:      {result.attempts}", file=stream)
    print(f"  Steps:         {result.steps}", file=stream)
    print(f"  Run seed:      {result.run_seed}", file=stream)

    if result.seed is not None:
        print(file=stream)
        print(f"Seed: {result.seed}", file=stream)
