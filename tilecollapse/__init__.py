"""Step-driven tile-collapse generator for constraint-consistent 2D tile grids.

This package exposes the public API surface via:

- ``tilecollapse.engine.rules.AdjacencyRules``: the directional adjacency table.
- ``tilecollapse.engine.solver.CollapseSolver``: one run, advanced by ``step()``.
- ``tilecollapse.engine.generator.LandscapeGenerator``: retries runs until one
  completes, then validates and decorates the grid.
"""

from .core.constants import Direction, StepResult
from .engine.generator import GenerationResult, GeneratorConfig, LandscapeGenerator
from .engine.rules import AdjacencyRules
from .engine.solver import CollapseSolver, SolverConfig

__all__ = [
    "AdjacencyRules",
    "CollapseSolver",
    "Direction",
    "GenerationResult",
    "GeneratorConfig",
    "LandscapeGenerator",
    "SolverConfig",
    "StepResult",
]

__version__ = "0.1.0"
