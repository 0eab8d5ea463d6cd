"""CP-SAT completability diagnosis using OR-Tools.

The step engine never searches. After a contradiction this module answers a
different question: does *any* completion of the cells collapsed so far
exist? A ``False`` answer means the pins or rules make the board impossible;
``True`` means the greedy run was merely unlucky and a reseed may succeed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ortools.sat.python import cp_model

from ..core.constants import Direction
from ..core.models import Coordinate
from ..utils.logger import get_logger
from .grid import TileGrid
from .rules import AdjacencyRules


LOGGER = get_logger(__name__)

# Each unordered neighbour pair is visited once.
_PAIR_DIRECTIONS = (Direction.RIGHT, Direction.DOWN)


@dataclass
class FeasibilityResult:
    feasible: Optional[bool]
    status: str
    assignment: Dict[Coordinate, str] = field(default_factory=dict)
    wall_time: float = 0.0


def check_completable(
    grid: TileGrid,
    rules: AdjacencyRules,
    timeout: float = 10.0,
    respect_possibilities: bool = False,
    num_workers: int = 4,
) -> FeasibilityResult:
    """Decide whether the collapsed cells of ``grid`` admit a full completion.

    Args:
        grid: Grid whose collapsed cells are treated as fixed.
        rules: Adjacency table the completion must satisfy.
        timeout: Solver time limit in seconds.
        respect_possibilities: Restrict undecided cells to their current
            candidates instead of the whole alphabet. A contradicted cell then
            makes the model trivially infeasible.
        num_workers: CP-SAT search workers.

    Returns:
        ``FeasibilityResult`` with ``feasible=None`` when the time limit hit
        before a verdict.
    """

    model = cp_model.CpModel()

    # ------------------------------------------------------------------
    # Step 1: one variable per cell
    # ------------------------------------------------------------------
    cell_vars: Dict[Coordinate, cp_model.IntVar] = {}
    for x, y in grid.coordinates():
        cell = grid.cells[y][x]
        if cell.tile is not None:
            values = [rules.index_of(cell.tile)]
        elif respect_possibilities:
            values = sorted(rules.index_of(tile) for tile in cell.possibilities)
        else:
            values = list(range(len(rules)))
        if not values:
            LOGGER.info("Cell (%d,%d) has no candidates; model is infeasible", x, y)
            return FeasibilityResult(feasible=False, status="INFEASIBLE")
        cell_vars[(x, y)] = model.new_int_var_from_domain(
            cp_model.Domain.from_values(values), f"T_{x}_{y}"
        )

    # ------------------------------------------------------------------
    # Step 2: table constraints per neighbour pair
    # ------------------------------------------------------------------
    pair_tables: Dict[Direction, List[Tuple[int, int]]] = {
        direction: _compatible_pairs(rules, direction) for direction in _PAIR_DIRECTIONS
    }
    for x, y in grid.coordinates():
        for direction in _PAIR_DIRECTIONS:
            dx, dy = direction.offset
            nx, ny = x + dx, y + dy
            if not grid.bounds.contains(nx, ny):
                continue
            model.add_allowed_assignments(
                [cell_vars[(x, y)], cell_vars[(nx, ny)]], pair_tables[direction]
            )

    # ------------------------------------------------------------------
    # Step 3: solve
    # ------------------------------------------------------------------
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.num_workers = num_workers

    LOGGER.info(
        "CP-SAT: %d cells (%d fixed), %d tile types, solving (timeout=%0.1fs)...",
        len(cell_vars),
        grid.collapsed_count,
        len(rules),
        timeout,
    )
    status = solver.solve(model)
    status_name = solver.status_name(status)

    if status in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        assignment = {
            coord: rules.alphabet[solver.value(var)] for coord, var in cell_vars.items()
        }
        LOGGER.info("CP-SAT: completion exists (%.2fs)", solver.wall_time)
        return FeasibilityResult(
            feasible=True, status=status_name, assignment=assignment, wall_time=solver.wall_time
        )
    if status == cp_model.INFEASIBLE:
        LOGGER.info("CP-SAT: no completion exists (%.2fs)", solver.wall_time)
        return FeasibilityResult(feasible=False, status=status_name, wall_time=solver.wall_time)

    LOGGER.warning("CP-SAT: no verdict (status=%s)", status_name)
    return FeasibilityResult(feasible=None, status=status_name, wall_time=solver.wall_time)


def _compatible_pairs(rules: AdjacencyRules, direction: Direction) -> List[Tuple[int, int]]:
    """Index pairs ``(a, b)`` such that ``b`` may sit on the ``direction`` side of ``a``."""
    pairs = []
    for a, tile in enumerate(rules.alphabet):
        for b, neighbour in enumerate(rules.alphabet):
            if rules.compatible(tile, direction, neighbour):
                pairs.append((a, b))
    return pairs
