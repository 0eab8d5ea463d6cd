"""Load and save adjacency rule tables as JSON documents.

Two layouts are accepted:

- ``{"tiles": [...], "allowed": {tile: {direction: [...]}}}`` with a rule per
  direction, the same shape :meth:`AdjacencyRules.to_jsonable` writes.
- ``{"tiles": [...], "neighbours": {tile: [...]}}`` for tables that allow the
  same set on every side.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..core.exceptions import RuleTableError
from ..engine.rules import AdjacencyRules
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


def load_rules(path: Path | str) -> AdjacencyRules:
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuleTableError(f"Cannot read rule file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RuleTableError(f"Rule file {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise RuleTableError(f"Rule file {path} must contain a JSON object")

    if "neighbours" in payload:
        tiles = payload.get("tiles")
        neighbours = payload["neighbours"]
        if not isinstance(tiles, list) or not isinstance(neighbours, dict):
            raise RuleTableError(f"Rule file {path} needs a 'tiles' list and a 'neighbours' object")
        rules = AdjacencyRules.uniform(tiles, neighbours)
    else:
        rules = AdjacencyRules.from_mapping(payload)

    LOGGER.info("Loaded %d tile types from %s", len(rules), path)
    return rules


def save_rules(rules: AdjacencyRules, path: Path | str) -> Path:
    path = Path(path)
    path.write_text(json.dumps(rules.to_jsonable(), indent=2), encoding="utf-8")
    return path
