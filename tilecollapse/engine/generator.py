"""Generation orchestration on top of the step-driven solver.

A run is driven step by step until it completes or contradicts. Because the
solver never backtracks, recovery from a contradiction is a fresh run with a
new seed, repeated up to ``retry_limit`` times.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..core.constants import StepResult
from ..core.exceptions import ConfigurationError, GenerationError, ValidationError
from ..core.models import Coordinate, Decoration
from ..decoration.decorations import LANDSCAPE_DECORATIONS, DecorationRule, decorate
from ..utils.logger import get_logger
from .grid import TileGrid
from .rules import AdjacencyRules
from .solver import CollapseSolver, SolverConfig
from .validator import GridValidator


LOGGER = get_logger(__name__)

StepCallback = Callable[[CollapseSolver, StepResult], None]


@dataclass
class GeneratorConfig:
    height: int
    width: int
    seed: Optional[int] = None
    start: Optional[Coordinate] = None
    start_tile: Optional[str] = None
    pinned: Dict[Coordinate, str] = field(default_factory=dict)
    retry_limit: int = 5
    max_steps: Optional[int] = None
    decorate: bool = True

    def step_budget(self) -> int:
        """Steps allowed per run.

        Every collapse queues at most four neighbours and every cell collapses
        once, so ``5 * cells`` steps plus the pinned entries and the final
        completion step always suffice.
        """
        if self.max_steps is not None:
            if self.max_steps <= 0:
                raise ConfigurationError(f"max_steps must be positive, got {self.max_steps}")
            return self.max_steps
        return 5 * self.width * self.height + len(self.pinned) + 1

    def to_solver_config(self, seed_override: Optional[int] = None) -> SolverConfig:
        return SolverConfig(
            width=self.width,
            height=self.height,
            start=self.start,
            start_tile=self.start_tile,
            pinned=dict(self.pinned),
            seed=seed_override if seed_override is not None else self.seed,
        )


@dataclass
class GenerationResult:
    grid: TileGrid
    decorations: List[Decoration]
    seed: Optional[int]
    run_seed: int
    attempts: int
    steps: int


def run_to_completion(
    solver: CollapseSolver,
    max_steps: Optional[int] = None,
    on_step: Optional[StepCallback] = None,
) -> StepResult:
    """Call ``solver.step()`` until it finishes or ``max_steps`` is spent.

    Returns ``StepResult.CONTINUING`` when the budget ran out first.
    """

    result = StepResult.CONTINUING
    taken = 0
    while max_steps is None or taken < max_steps:
        result = solver.step()
        taken += 1
        if on_step is not None:
            on_step(solver, result)
        if result is not StepResult.CONTINUING:
            break
    return result


class LandscapeGenerator:
    """Drives solver runs with fresh seeds until one completes."""

    def __init__(
        self,
        config: GeneratorConfig,
        rules: AdjacencyRules,
        decoration_rules: Iterable[DecorationRule] = LANDSCAPE_DECORATIONS,
        on_step: Optional[StepCallback] = None,
    ) -> None:
        if config.retry_limit <= 0:
            raise ConfigurationError(f"retry_limit must be positive, got {config.retry_limit}")
        self.config = config
        self.rules = rules
        self.decoration_rules = tuple(decoration_rules)
        self.on_step = on_step
        self.rng = random.Random(config.seed)
        self.validator = GridValidator(rules)
        self.last_failure: Optional[CollapseSolver] = None

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def generate(self) -> GenerationResult:
        budget = self.config.step_budget()
        for attempt in range(1, self.config.retry_limit + 1):
            LOGGER.info("Generation attempt %s/%s", attempt, self.config.retry_limit)
            run_seed = self.rng.randint(0, 1_000_000)
            solver = CollapseSolver(self.rules, self.config.to_solver_config(seed_override=run_seed))
            try:
                outcome = run_to_completion(solver, budget, self.on_step)
                if outcome is StepResult.CONTRADICTION:
                    raise GenerationError(f"Contradiction at {solver.contradiction_at}")
                if outcome is StepResult.CONTINUING:
                    raise GenerationError(f"Step budget of {budget} exhausted")
                validation = self.validator.validate(solver.grid)
                if not validation.ok:
                    raise ValidationError(f"Grid validation failed: {validation.messages}")
            except (GenerationError, ValidationError) as exc:
                LOGGER.warning("Generation attempt failed (seed %s): %s", run_seed, exc)
                self.last_failure = solver
                continue

            decorations: List[Decoration] = []
            if self.config.decorate:
                decoration_seed = self.rng.randint(0, 1_000_000)
                decorations = decorate(
                    solver.grid, self.decoration_rules, random.Random(decoration_seed)
                )
            LOGGER.info(
                "Landscape generation completed in %d steps on attempt %d",
                solver.steps_taken,
                attempt,
            )
            return GenerationResult(
                grid=solver.grid,
                decorations=decorations,
                seed=self.config.seed,
                run_seed=run_seed,
                attempts=attempt,
                steps=solver.steps_taken,
            )
        raise GenerationError(
            f"Unable to generate a {self.config.width}x{self.config.height} grid "
            f"after {self.config.retry_limit} attempts"
        )
