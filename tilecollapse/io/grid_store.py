"""Persistent landscape document store.

Every generation request (success or failure) can be saved as a JSON
document under ``local_db/collections/landscapes/``. Documents carry the
grid as tile indices plus the alphabet, so any renderer can rebuild it.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..core.models import Decoration
    from ..engine.generator import GenerationResult, GeneratorConfig
    from ..engine.grid import TileGrid


LOGGER = get_logger(__name__)

DEFAULT_STORE_DIR = Path("local_db/collections/landscapes")


class GridStore:
    """Save generation results as structured JSON documents."""

    def __init__(self, store_dir: Path | str = DEFAULT_STORE_DIR) -> None:
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def save_success(self, result: "GenerationResult", config: "GeneratorConfig") -> str:
        """Persist a completed landscape and return its document ID."""
        doc_id = self._new_id()
        doc = {
            "id": doc_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "status": "success",
            "config": self._serialize_config(config),
            "seed": result.seed,
            "run_seed": result.run_seed,
            "attempts": result.attempts,
            "steps": result.steps,
            "grid": result.grid.to_jsonable(),
            "decorations": self._serialize_decorations(result.decorations),
            "stats": self._compute_stats(result.grid),
        }
        self._write(doc_id, doc)
        LOGGER.info("Landscape saved: %s", doc_id)
        return doc_id

    def save_failure(
        self,
        config: "GeneratorConfig",
        error: str,
        grid: Optional["TileGrid"] = None,
    ) -> str:
        """Persist a failed request, with the last partial grid if any."""
        doc_id = self._new_id()
        doc = {
            "id": doc_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "status": "failed",
            "error": error,
            "config": self._serialize_config(config),
            "grid": grid.to_jsonable() if grid is not None else None,
            "stats": self._compute_stats(grid) if grid is not None else {},
        }
        self._write(doc_id, doc)
        LOGGER.info("Landscape failure saved: %s", doc_id)
        return doc_id

    def load(self, doc_id: str) -> dict:
        path = self.store_dir / f"{doc_id}.json"
        return json.loads(path.read_text(encoding="utf-8"))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _write(self, doc_id: str, doc: dict) -> None:
        path = self.store_dir / f"{doc_id}.json"
        path.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")

    @staticmethod
    def _compute_stats(grid: "TileGrid") -> dict:
        total = grid.bounds.area
        return {
            "width": grid.width,
            "height": grid.height,
            "total_cells": total,
            "collapsed_cells": grid.collapsed_count,
            "contradictions": [list(coord) for coord in grid.contradictions()],
            "tile_counts": grid.tile_counts(),
        }

    @staticmethod
    def _serialize_decorations(decorations: List["Decoration"]) -> list:
        return [
            {"x": item.x, "y": item.y, "marker": item.marker, "tile": item.tile}
            for item in decorations
        ]

    @staticmethod
    def _serialize_config(config: "GeneratorConfig") -> dict:
        return {
            "height": config.height,
            "width": config.width,
            "seed": config.seed,
            "start": list(config.start) if config.start is not None else None,
            "start_tile": config.start_tile,
            "pinned": [[x, y, tile] for (x, y), tile in sorted(config.pinned.items())],
            "retry_limit": config.retry_limit,
            "max_steps": config.max_steps,
            "decorate": config.decorate,
        }

    @staticmethod
    def _new_id() -> str:
        ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        short_uuid = uuid.uuid4().hex[:8]
        return f"{ts}_{short_uuid}"
