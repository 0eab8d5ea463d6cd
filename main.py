"""CLI entrypoint for the tile-collapse landscape generator."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from tilecollapse.core.exceptions import ConfigurationError, GenerationError
from tilecollapse.data.landscape import DEFAULT_HEIGHT, DEFAULT_WIDTH, landscape_rules
from tilecollapse.data.rule_loader import load_rules
from tilecollapse.engine.feasibility import check_completable
from tilecollapse.engine.generator import GeneratorConfig, LandscapeGenerator
from tilecollapse.io.grid_store import GridStore
from tilecollapse.utils.logger import configure_logging
from tilecollapse.utils.pretty import pretty_print_grid, print_generation_stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a constraint-consistent tile landscape",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Grid width in cells")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Grid height in cells")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument(
        "--rules",
        type=Path,
        metavar="FILE",
        help="JSON adjacency table (defaults to the built-in terrain tileset)",
    )
    parser.add_argument(
        "--start",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        help="First cell to collapse (default: grid centre)",
    )
    parser.add_argument("--start-tile", type=str, help="Tile for the first collapsed cell")
    parser.add_argument(
        "--pin",
        nargs=3,
        action="append",
        metavar=("X", "Y", "TILE"),
        default=[],
        help="Fix a cell to a tile before generation (repeatable)",
    )
    parser.add_argument("--retries", type=int, default=5, help="Runs to attempt before giving up")
    parser.add_argument("--max-steps", type=int, help="Step budget per run")
    parser.add_argument(
        "--no-decorations",
        action="store_true",
        help="Skip the decoration pass",
    )
    parser.add_argument(
        "--diagnose",
        action="store_true",
        help="On failure, ask CP-SAT whether the last partial grid could have been completed",
    )
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument(
        "--save",
        action="store_true",
        help="Store the result under local_db/collections/landscapes/",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def parse_pins(parser: argparse.ArgumentParser, raw: List[List[str]]) -> Dict[tuple, str]:
    pins: Dict[tuple, str] = {}
    for x_text, y_text, tile in raw:
        try:
            coord = (int(x_text), int(y_text))
        except ValueError:
            parser.error(f"--pin coordinates must be integers, got {x_text} {y_text}")
        if coord in pins and pins[coord] != tile:
            parser.error(f"--pin {coord} given twice with different tiles")
        pins[coord] = tile
    return pins


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    if args.width <= 0 or args.height <= 0:
        parser.error("--width and --height must be positive")

    try:
        rules = load_rules(args.rules) if args.rules else landscape_rules()
    except ConfigurationError as exc:
        parser.error(str(exc))

    config = GeneratorConfig(
        height=args.height,
        width=args.width,
        seed=args.seed,
        start=tuple(args.start) if args.start else None,
        start_tile=args.start_tile,
        pinned=parse_pins(parser, args.pin),
        retry_limit=args.retries,
        max_steps=args.max_steps,
        decorate=not args.no_decorations,
    )

    store = GridStore() if args.save else None
    try:
        generator = LandscapeGenerator(config, rules)
        result = generator.generate()
    except ConfigurationError as exc:
        parser.error(str(exc))
    except GenerationError as exc:
        failed = generator.last_failure
        if failed is not None:
            pretty_print_grid(failed.grid, label=f"Last attempt: {exc}")
            if args.diagnose:
                verdict = check_completable(failed.grid, rules)
                print(f"Completable from collapsed cells: {verdict.feasible} ({verdict.status})")
        if store is not None:
            store.save_failure(config, str(exc), failed.grid if failed is not None else None)
        return 1

    if store is not None:
        store.save_success(result, config)

    if args.output:
        payload: Dict[str, Any] = {
            "grid": result.grid.to_jsonable(),
            "decorations": [
                {"x": item.x, "y": item.y, "marker": item.marker}
                for item in result.decorations
            ],
            "seed": result.seed,
            "run_seed": result.run_seed,
            "attempts": result.attempts,
            "steps": result.steps,
        }
        args.output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    else:
        print_generation_stats(result)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
