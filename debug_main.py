"""Convenience entrypoint with predefined solver settings for debugging.

Usage in a Python console (Jupyter-style)::

    import debug_main
    state = debug_main.prepare_state(width=12, height=8, seed=7)
    debug_main.step_n(state, 25)
    debug_main.show(state)
    debug_main.step_until_finished(state)
    debug_main.step_validate(state)

Call :func:`run_debug` for a one-liner that races several seeds in parallel
and returns the first complete grid.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Tuple

from tilecollapse.core.constants import StepResult
from tilecollapse.core.exceptions import GenerationError
from tilecollapse.data.landscape import landscape_rules
from tilecollapse.engine.feasibility import check_completable
from tilecollapse.engine.generator import run_to_completion
from tilecollapse.engine.solver import CollapseSolver, SolverConfig
from tilecollapse.engine.validator import GridValidator, ValidationResult
from tilecollapse.utils.logger import configure_logging
from tilecollapse.utils.pretty import pretty_print_grid


DEFAULT_DEBUG_ARGS: Dict[str, Any] = {
    "width": 20,
    "height": 15,
    "seed": None,
}

LOGGER = logging.getLogger(__name__)


def prepare_state(**overrides: Any) -> Dict[str, Any]:
    """Build a fresh solver and keep it in a plain dict for inspection."""

    args = {**DEFAULT_DEBUG_ARGS, **overrides}
    rules = args.pop("rules", None) or landscape_rules()
    config = SolverConfig(**args)
    solver = CollapseSolver(rules, config)
    return {"rules": rules, "config": config, "solver": solver, "history": []}


def step_n(state: Dict[str, Any], count: int) -> StepResult:
    solver: CollapseSolver = state["solver"]
    result = StepResult.CONTINUING
    for _ in range(count):
        result = solver.step()
        state["history"].append(result)
        if result is not StepResult.CONTINUING:
            break
    return result


def step_until_finished(state: Dict[str, Any]) -> StepResult:
    solver: CollapseSolver = state["solver"]
    result = run_to_completion(
        solver, on_step=lambda _solver, outcome: state["history"].append(outcome)
    )
    LOGGER.info("Run finished with %s after %d steps", result.value, solver.steps_taken)
    return result


def show(state: Dict[str, Any]) -> None:
    solver: CollapseSolver = state["solver"]
    label = (
        f"state={solver.state.value} steps={solver.steps_taken} "
        f"queued={len(solver.queue)} collapsed={solver.grid.collapsed_count}"
    )
    pretty_print_grid(solver.grid, label=label)


def step_validate(state: Dict[str, Any]) -> ValidationResult:
    validation = GridValidator(state["rules"]).validate(state["solver"].grid)
    state["validation"] = validation
    return validation


def step_diagnose(state: Dict[str, Any]):
    return check_completable(state["solver"].grid, state["rules"])


def run_debug(parallel_runs: int = 4, max_runs: int = 12, **overrides: Any) -> CollapseSolver:
    """Race independent seeded runs and return the first completed solver.

    Runs never share a grid, so each worker owns its solver outright.
    """

    requested_seed = overrides.pop("seed", DEFAULT_DEBUG_ARGS["seed"])
    seeds: List[int] = [
        requested_seed if requested_seed is not None and index == 0 else random.randint(0, 1_000_000)
        for index in range(max_runs)
    ]

    for offset in range(0, max_runs, parallel_runs):
        batch: List[Tuple[int, int]] = [
            (offset + index + 1, seed) for index, seed in enumerate(seeds[offset:offset + parallel_runs])
        ]
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = {
                executor.submit(_run_single_attempt, seed, overrides): (attempt_no, seed)
                for attempt_no, seed in batch
            }
            for future in as_completed(futures):
                attempt_no, seed = futures[future]
                state = future.result()
                if state["result"] is StepResult.COMPLETED:
                    LOGGER.info("Run %s/%s completed (seed %s)", attempt_no, max_runs, seed)
                    show(state)
                    return state["solver"]
                LOGGER.warning(
                    "Run %s/%s ended with %s (seed %s)",
                    attempt_no,
                    max_runs,
                    state["result"].value,
                    seed,
                )

    raise GenerationError("No debug run completed")


def _run_single_attempt(seed: int, overrides: Dict[str, Any]) -> Dict[str, Any]:
    state = prepare_state(seed=seed, **overrides)
    state["result"] = step_until_finished(state)
    return state


def main() -> None:  # pragma: no cover - manual helper
    configure_logging(logging.INFO)
    solver = run_debug()
    print(f"Seed: {solver.config.seed}")
    print(f"Steps: {solver.steps_taken}")
    print(f"Tiles: {solver.grid.tile_counts()}")


if __name__ == "__main__":
    main()
