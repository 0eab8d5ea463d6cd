import random
import unittest
from unittest.mock import MagicMock

from tilecollapse.core.constants import StepResult
from tilecollapse.core.exceptions import ConfigurationError, GenerationError
from tilecollapse.data.landscape import landscape_rules
from tilecollapse.decoration.decorations import (
    LANDSCAPE_DECORATIONS,
    DecorationRule,
    decorate,
    index_rules,
)
from tilecollapse.engine.generator import GeneratorConfig, LandscapeGenerator
from tilecollapse.engine.grid import GridConfig, TileGrid
from tilecollapse.engine.rules import AdjacencyRules
from tilecollapse.engine.validator import GridValidator


def _alternating_rules() -> AdjacencyRules:
    return AdjacencyRules.uniform(["A", "B"], {"A": ["B"], "B": ["A"]})


class GeneratorConfigTests(unittest.TestCase):
    def test_default_step_budget_covers_pins(self) -> None:
        config = GeneratorConfig(height=3, width=4, pinned={(0, 0): "A", (1, 1): "B"})
        self.assertEqual(config.step_budget(), 5 * 12 + 2 + 1)

    def test_explicit_step_budget(self) -> None:
        self.assertEqual(GeneratorConfig(height=2, width=2, max_steps=7).step_budget(), 7)
        with self.assertRaises(ConfigurationError):
            GeneratorConfig(height=2, width=2, max_steps=0).step_budget()

    def test_solver_config_takes_run_seed(self) -> None:
        config = GeneratorConfig(height=2, width=3, seed=9, start=(1, 1), pinned={(0, 0): "A"})
        solver_config = config.to_solver_config(seed_override=123)
        self.assertEqual(solver_config.seed, 123)
        self.assertEqual(solver_config.start, (1, 1))
        self.assertEqual(solver_config.pinned, {(0, 0): "A"})
        self.assertIsNot(solver_config.pinned, config.pinned)
        self.assertEqual(config.to_solver_config().seed, 9)


class LandscapeGeneratorTests(unittest.TestCase):
    def test_permissive_rules_complete_first_attempt(self) -> None:
        rules = AdjacencyRules.permissive(["A", "B", "C"])
        generator = LandscapeGenerator(GeneratorConfig(height=4, width=5, seed=1), rules)
        result = generator.generate()
        self.assertEqual(result.attempts, 1)
        self.assertTrue(result.grid.is_complete)
        self.assertEqual(result.seed, 1)
        self.assertIsNone(generator.last_failure)

    def test_landscape_generation_validates(self) -> None:
        rules = landscape_rules()
        config = GeneratorConfig(height=10, width=12, seed=3, retry_limit=100)
        result = LandscapeGenerator(config, rules).generate()
        self.assertTrue(result.grid.is_complete)
        self.assertTrue(GridValidator(rules).validate(result.grid).ok)
        for item in result.decorations:
            self.assertEqual(result.grid.tile_at(item.x, item.y), item.tile)

    def test_same_seed_reproduces_landscape(self) -> None:
        rules = landscape_rules()
        first = LandscapeGenerator(GeneratorConfig(height=8, width=8, seed=11, retry_limit=100), rules)
        second = LandscapeGenerator(GeneratorConfig(height=8, width=8, seed=11, retry_limit=100), rules)
        a, b = first.generate(), second.generate()
        self.assertEqual(a.grid.to_jsonable(), b.grid.to_jsonable())
        self.assertEqual(a.run_seed, b.run_seed)
        self.assertEqual(a.decorations, b.decorations)

    def test_decorations_draw_their_own_seed(self) -> None:
        rules = AdjacencyRules.permissive(["grass", "sand", "snow"])
        result = LandscapeGenerator(GeneratorConfig(height=6, width=6, seed=21), rules).generate()
        master = random.Random(21)
        self.assertEqual(result.run_seed, master.randint(0, 1_000_000))
        decoration_seed = master.randint(0, 1_000_000)
        self.assertEqual(
            result.decorations,
            decorate(result.grid, LANDSCAPE_DECORATIONS, random.Random(decoration_seed)),
        )

    def test_decorations_can_be_disabled(self) -> None:
        rules = AdjacencyRules.permissive(["grass"])
        config = GeneratorConfig(height=3, width=3, seed=1, decorate=False)
        self.assertEqual(LandscapeGenerator(config, rules).generate().decorations, [])

    def test_impossible_pins_exhaust_retries(self) -> None:
        config = GeneratorConfig(
            height=1,
            width=2,
            seed=5,
            start=(0, 0),
            start_tile="A",
            pinned={(1, 0): "A"},
            retry_limit=3,
        )
        generator = LandscapeGenerator(config, _alternating_rules())
        with self.assertLogs("tilecollapse.engine.generator", level="WARNING") as logs:
            with self.assertRaises(GenerationError):
                generator.generate()
        self.assertEqual(len(logs.records), 3)
        self.assertIsNotNone(generator.last_failure)
        self.assertEqual(generator.last_failure.contradiction_at, (1, 0))

    def test_exhausted_step_budget_is_a_failure(self) -> None:
        config = GeneratorConfig(height=3, width=3, seed=1, max_steps=1, retry_limit=2)
        generator = LandscapeGenerator(config, AdjacencyRules.permissive(["A", "B"]))
        with self.assertRaises(GenerationError):
            generator.generate()
        self.assertEqual(generator.last_failure.steps_taken, 1)

    def test_bad_configuration_is_not_retried(self) -> None:
        config = GeneratorConfig(height=3, width=3, start=(5, 5))
        generator = LandscapeGenerator(config, AdjacencyRules.permissive(["A"]))
        with self.assertRaises(ConfigurationError):
            generator.generate()
        with self.assertRaises(ConfigurationError):
            LandscapeGenerator(GeneratorConfig(height=3, width=3, retry_limit=0), landscape_rules())

    def test_on_step_sees_every_step(self) -> None:
        callback = MagicMock()
        rules = AdjacencyRules.permissive(["A", "B"])
        generator = LandscapeGenerator(GeneratorConfig(height=3, width=3, seed=2), rules, on_step=callback)
        result = generator.generate()
        self.assertEqual(callback.call_count, result.steps)
        _, last_result = callback.call_args[0]
        self.assertIs(last_result, StepResult.COMPLETED)


class ValidatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rules = landscape_rules()
        self.validator = GridValidator(self.rules)

    def test_incompatible_neighbours_reported(self) -> None:
        grid = TileGrid(GridConfig(width=2, height=1, alphabet=self.rules.alphabet))
        grid.collapse(0, 0, "water")
        grid.collapse(1, 0, "grass")
        with self.assertLogs("tilecollapse.engine.validator", level="ERROR"):
            result = self.validator.validate(grid)
        self.assertFalse(result.ok)
        self.assertIn("grass", result.messages[0])

    def test_partial_grid_needs_relaxed_check(self) -> None:
        grid = TileGrid(GridConfig(width=2, height=1, alphabet=self.rules.alphabet))
        grid.collapse(0, 0, "sand")
        with self.assertLogs("tilecollapse.engine.validator", level="ERROR"):
            self.assertFalse(self.validator.validate(grid).ok)
        self.assertTrue(self.validator.validate(grid, require_complete=False).ok)

    def test_unknown_tile_reported(self) -> None:
        grid = TileGrid(GridConfig(width=1, height=1, alphabet=("lava",)))
        grid.collapse(0, 0, "lava")
        with self.assertLogs("tilecollapse.engine.validator", level="ERROR"):
            result = self.validator.validate(grid)
        self.assertFalse(result.ok)
        self.assertIn("lava", result.messages[0])


class DecorationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.grid = TileGrid(GridConfig(width=3, height=1, alphabet=landscape_rules().alphabet))
        self.grid.collapse(0, 0, "grass")
        self.grid.collapse(1, 0, "sand")
        self.grid.collapse(2, 0, "water")

    def test_rolls_against_tile_probability(self) -> None:
        rng = MagicMock()
        rng.random.side_effect = [0.05, 0.2]
        placed = decorate(self.grid, rng=rng)
        self.assertEqual(rng.random.call_count, 2)
        self.assertEqual(len(placed), 1)
        self.assertEqual((placed[0].x, placed[0].y, placed[0].marker), (0, 0, "tree"))

    def test_uncollapsed_cells_are_skipped(self) -> None:
        grid = TileGrid(GridConfig(width=2, height=1, alphabet=("grass", "sand")))
        grid.collapse(1, 0, "grass")
        rng = MagicMock()
        rng.random.return_value = 0.0
        placed = decorate(grid, rng=rng)
        rng.random.assert_called_once_with()
        self.assertEqual([(item.x, item.marker) for item in placed], [(1, "tree")])

    def test_decoration_never_touches_grid(self) -> None:
        before = self.grid.to_jsonable()
        decorate(self.grid, [DecorationRule("water", "boat", 1.0)])
        self.assertEqual(self.grid.to_jsonable(), before)

    def test_rule_validation(self) -> None:
        with self.assertRaises(ValueError):
            DecorationRule("grass", "tree", 1.5)
        with self.assertRaises(ValueError):
            index_rules([DecorationRule("grass", "tree", 0.1), DecorationRule("grass", "bush", 0.2)])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
