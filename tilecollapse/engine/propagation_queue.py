"""FIFO work-list of cells awaiting constraint re-evaluation."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, Optional

from ..core.models import Coordinate
from .grid import TileGrid


class PropagationQueue:
    """Insertion-ordered coordinates; the same cell may be queued many times."""

    def __init__(self) -> None:
        self._items: Deque[Coordinate] = deque()

    def push(self, x: int, y: int) -> None:
        self._items.append((x, y))

    def enqueue_neighbors(self, grid: TileGrid, x: int, y: int) -> int:
        """Queue the in-bounds, uncollapsed neighbours of ``(x, y)``."""

        queued = 0
        for _, nx, ny in grid.neighbors(x, y):
            if not grid.cells[ny][nx].collapsed:
                self._items.append((nx, ny))
                queued += 1
        return queued

    def dequeue(self) -> Optional[Coordinate]:
        if not self._items:
            return None
        return self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self._items)
