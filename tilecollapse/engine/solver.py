"""Step-driven collapse engine.

Each call to :meth:`CollapseSolver.step` performs exactly one unit of work:

  1. Queue non-empty: re-evaluate one queued cell against its collapsed
     neighbours, collapsing it when a single candidate remains.
  2. Queue empty: pick the lowest-entropy cell, refresh it, and collapse it
     to a uniformly random remaining candidate.
  3. Nothing left to collapse: report completion.

There is no internal loop and no backtracking. A cell whose candidates run
out ends the run with ``StepResult.CONTRADICTION``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Protocol, Sequence, TypeVar

from ..core.constants import SolverState, StepResult
from ..core.exceptions import ConfigurationError
from ..core.models import Coordinate
from ..utils.logger import get_logger
from .entropy import find_lowest_entropy_cell
from .grid import GridConfig, TileGrid
from .propagation_queue import PropagationQueue
from .propagator import update_constraints
from .rules import AdjacencyRules


LOGGER = get_logger(__name__)

T = TypeVar("T")


class RandomSource(Protocol):
    """Anything that can pick uniformly from a non-empty sequence."""

    def choice(self, seq: Sequence[T]) -> T:
        ...


@dataclass
class SolverConfig:
    """Per-run settings for :class:`CollapseSolver`."""

    width: int
    height: int
    start: Optional[Coordinate] = None
    start_tile: Optional[str] = None
    pinned: Dict[Coordinate, str] = field(default_factory=dict)
    seed: Optional[int] = None


class CollapseSolver:
    """Owns one run's grid, propagation queue and random source."""

    def __init__(
        self,
        rules: AdjacencyRules,
        config: SolverConfig,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.rules = rules
        self.config = config
        self.grid = TileGrid(GridConfig(config.width, config.height, rules.alphabet))
        self.queue = PropagationQueue()
        self.rng: RandomSource = rng if rng is not None else random.Random(config.seed)
        self.state = SolverState.PROPAGATING
        self.steps_taken = 0
        self.contradiction_at: Optional[Coordinate] = None
        self.start = self._resolve_start()
        self._validate_pins()
        self._seed()

    # ------------------------------------------------------------------
    # Initialization helpers
    # ------------------------------------------------------------------
    def _resolve_start(self) -> Coordinate:
        start = self.config.start if self.config.start is not None else self.grid.bounds.center
        if not self.grid.bounds.contains(*start):
            raise ConfigurationError(f"Start coordinate {start} is outside the grid")
        start_tile = self.config.start_tile
        if start_tile is not None and start_tile not in self.rules:
            raise ConfigurationError(f"Start tile '{start_tile}' is not part of the alphabet")
        pinned = self.config.pinned.get(start)
        if start_tile is not None and pinned is not None and pinned != start_tile:
            raise ConfigurationError(
                f"Start tile '{start_tile}' conflicts with pinned tile '{pinned}' at {start}"
            )
        return start

    def _validate_pins(self) -> None:
        for (x, y), tile in self.config.pinned.items():
            if not self.grid.bounds.contains(x, y):
                raise ConfigurationError(f"Pinned coordinate {(x, y)} is outside the grid")
            if tile not in self.rules:
                raise ConfigurationError(f"Pinned tile '{tile}' at {(x, y)} is not part of the alphabet")

    def _seed(self) -> None:
        x, y = self.start
        if self.config.start_tile is not None:
            chosen = self.config.start_tile
        elif self.start in self.config.pinned:
            chosen = self.config.pinned[self.start]
        else:
            chosen = self.rng.choice(self.rules.ordered(self.grid.possibilities_at(x, y)))
        self._collapse(x, y, chosen)
        LOGGER.info(
            "Seeded %sx%s grid at (%s,%s) with '%s' (%d pinned cells)",
            self.grid.width,
            self.grid.height,
            x,
            y,
            chosen,
            len(self.config.pinned),
        )
        self._apply_pins()

    def _apply_pins(self) -> None:
        """Collapse pinned cells against the cells already collapsed.

        A pin that its collapsed neighbours rule out leaves the solver in
        ``SolverState.CONTRADICTION`` before the first step.
        """
        for (x, y), tile in self.config.pinned.items():
            if self.grid.is_collapsed(x, y):
                continue
            self.grid.restrict(x, y, (tile,))
            if not update_constraints(self.grid, self.rules, x, y):
                self._fail(x, y)
                return
            self._collapse(x, y, tile)
        self._refresh_state()

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def step(self) -> StepResult:
        """Perform one unit of propagation or collapse work."""

        if self.state is SolverState.DONE:
            return StepResult.COMPLETED
        if self.state is SolverState.CONTRADICTION:
            return StepResult.CONTRADICTION

        self.steps_taken += 1
        task = self.queue.dequeue()
        if task is not None:
            return self._process_task(*task)
        return self._collapse_lowest_entropy()

    def _process_task(self, x: int, y: int) -> StepResult:
        if self.grid.is_collapsed(x, y):
            self._refresh_state()
            return StepResult.CONTINUING

        candidates = update_constraints(self.grid, self.rules, x, y)
        if not candidates:
            return self._fail(x, y)
        if len(candidates) == 1:
            (tile,) = candidates
            self._collapse(x, y, tile)
        self._refresh_state()
        return StepResult.CONTINUING

    def _collapse_lowest_entropy(self) -> StepResult:
        target = find_lowest_entropy_cell(self.grid)
        if target is None:
            self.state = SolverState.DONE
            LOGGER.info("Grid complete after %d steps", self.steps_taken)
            return StepResult.COMPLETED

        x, y = target
        candidates = update_constraints(self.grid, self.rules, x, y)
        if not candidates:
            return self._fail(x, y)
        self._collapse(x, y, self.rng.choice(self.rules.ordered(candidates)))
        self._refresh_state()
        return StepResult.CONTINUING

    def _collapse(self, x: int, y: int, tile: str) -> None:
        self.grid.collapse(x, y, tile)
        self.queue.enqueue_neighbors(self.grid, x, y)

    def _fail(self, x: int, y: int) -> StepResult:
        self.state = SolverState.CONTRADICTION
        self.contradiction_at = (x, y)
        LOGGER.warning(
            "Contradiction at (%s,%s) after %d steps (%d/%d collapsed)",
            x,
            y,
            self.steps_taken,
            self.grid.collapsed_count,
            self.grid.bounds.area,
        )
        return StepResult.CONTRADICTION

    def _refresh_state(self) -> None:
        self.state = SolverState.PROPAGATING if self.queue else SolverState.SELECTING

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def is_finished(self) -> bool:
        return self.state in (SolverState.DONE, SolverState.CONTRADICTION)

    def is_collapsed(self, x: int, y: int) -> bool:
        return self.grid.is_collapsed(x, y)

    def tile_at(self, x: int, y: int) -> Optional[str]:
        return self.grid.tile_at(x, y)

    def possibilities_at(self, x: int, y: int) -> FrozenSet[str]:
        return self.grid.possibilities_at(x, y)
