import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr
from pathlib import Path
from unittest.mock import patch

import main as cli
from tilecollapse.core.constants import Direction
from tilecollapse.core.exceptions import RuleTableError
from tilecollapse.data.landscape import landscape_rules
from tilecollapse.data.rule_loader import load_rules, save_rules
from tilecollapse.engine.generator import GeneratorConfig, LandscapeGenerator
from tilecollapse.engine.grid import GridConfig, TileGrid
from tilecollapse.engine.rules import AdjacencyRules
from tilecollapse.io.grid_store import GridStore
from tilecollapse.utils.pretty import format_grid, print_generation_stats, tile_symbols


class GridStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = GridStore(Path(self._tmp.name) / "landscapes")
        self.rules = AdjacencyRules.permissive(["grass", "sand"])

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_success_document_round_trips(self) -> None:
        config = GeneratorConfig(height=2, width=3, seed=4, pinned={(0, 0): "sand"})
        result = LandscapeGenerator(config, self.rules).generate()
        doc_id = self.store.save_success(result, config)
        doc = self.store.load(doc_id)
        self.assertEqual(doc["status"], "success")
        self.assertEqual(doc["grid"], result.grid.to_jsonable())
        self.assertEqual(doc["config"]["pinned"], [[0, 0, "sand"]])
        self.assertEqual(doc["stats"]["total_cells"], 6)
        self.assertEqual(doc["stats"]["collapsed_cells"], 6)
        self.assertEqual(len(doc["decorations"]), len(result.decorations))
        self.assertNotIn("validation", doc)

    def test_failure_document_keeps_partial_grid(self) -> None:
        grid = TileGrid(GridConfig(width=2, height=1, alphabet=self.rules.alphabet))
        grid.collapse(0, 0, "grass")
        grid.restrict(1, 0, ())
        config = GeneratorConfig(height=1, width=2)
        doc = self.store.load(self.store.save_failure(config, "boom", grid))
        self.assertEqual(doc["status"], "failed")
        self.assertEqual(doc["error"], "boom")
        self.assertEqual(doc["stats"]["contradictions"], [[1, 0]])
        self.assertEqual(doc["grid"]["cells"], [[0, None]])

    def test_failure_without_grid(self) -> None:
        doc = self.store.load(self.store.save_failure(GeneratorConfig(height=1, width=1), "bad"))
        self.assertIsNone(doc["grid"])
        self.assertEqual(doc["stats"], {})


class RuleLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_saved_table_loads_back(self) -> None:
        path = save_rules(landscape_rules(), self.root / "landscape.json")
        loaded = load_rules(path)
        self.assertEqual(loaded.to_jsonable(), landscape_rules().to_jsonable())

    def test_uniform_layout(self) -> None:
        path = self.root / "pair.json"
        path.write_text(
            json.dumps({"tiles": ["A", "B"], "neighbours": {"A": ["B"], "B": ["A"]}}),
            encoding="utf-8",
        )
        self.assertEqual(sorted(load_rules(path).allowed("A", Direction.LEFT)), ["B"])

    def test_unreadable_and_malformed_files(self) -> None:
        with self.assertRaises(RuleTableError):
            load_rules(self.root / "missing.json")
        broken = self.root / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        with self.assertRaises(RuleTableError):
            load_rules(broken)
        listing = self.root / "list.json"
        listing.write_text("[]", encoding="utf-8")
        with self.assertRaises(RuleTableError):
            load_rules(listing)


class PrettyPrintTests(unittest.TestCase):
    def test_landscape_symbols_are_unique(self) -> None:
        symbols = tile_symbols(landscape_rules().alphabet)
        self.assertEqual(
            symbols, {"water": "W", "sand": "S", "grass": "G", "mountain": "M", "snow": "N"}
        )

    def test_format_marks_undecided_and_contradicted(self) -> None:
        grid = TileGrid(GridConfig(width=3, height=1, alphabet=("water", "sand")))
        grid.collapse(0, 0, "sand")
        grid.restrict(2, 0, ())
        row = format_grid(grid).splitlines()[-1]
        self.assertEqual(row.split("|")[1].split(), ["S", "?", "!"])

    def test_generation_stats_lists_tiles(self) -> None:
        rules = AdjacencyRules.permissive(["grass"])
        result = LandscapeGenerator(GeneratorConfig(height=2, width=2, seed=1), rules).generate()
        stream = io.StringIO()
        print_generation_stats(result, stream=stream)
        text = stream.getvalue()
        self.assertIn("--- Tiles ---", text)
        self.assertIn("grass", text)
        self.assertIn("Seed: 1", text)
        self.assertNotIn("--- Validation ---", text)


class CommandLineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_writes_json_output(self) -> None:
        output = self.root / "out.json"
        code = cli.main(
            [
                "--width", "6",
                "--height", "4",
                "--seed", "7",
                "--retries", "100",
                "--output", str(output),
                "--log-level", "WARNING",
            ]
        )
        self.assertEqual(code, 0)
        payload = json.loads(output.read_text(encoding="utf-8"))
        self.assertEqual(payload["grid"]["width"], 6)
        self.assertEqual(payload["seed"], 7)
        self.assertTrue(all(None not in row for row in payload["grid"]["cells"]))

    def test_impossible_pins_exit_with_failure(self) -> None:
        rules_path = save_rules(
            AdjacencyRules.uniform(["A", "B"], {"A": ["B"], "B": ["A"]}), self.root / "alt.json"
        )
        stdout = io.StringIO()
        with patch("sys.stdout", stdout):
            code = cli.main(
                [
                    "--width", "2",
                    "--height", "1",
                    "--rules", str(rules_path),
                    "--start", "0", "0",
                    "--start-tile", "A",
                    "--pin", "1", "0", "A",
                    "--retries", "2",
                    "--log-level", "ERROR",
                ]
            )
        self.assertEqual(code, 1)
        self.assertIn("Last attempt", stdout.getvalue())

    def test_bad_start_is_a_usage_error(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["--start", "99", "99", "--log-level", "ERROR"])
        self.assertEqual(ctx.exception.code, 2)

    def test_non_integer_pin_is_a_usage_error(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.main(["--pin", "a", "0", "water", "--log-level", "ERROR"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
