"""Adjacency rule table: which tiles may sit next to which, per direction."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Tuple

from ..core.constants import DIRECTIONS, Direction
from ..core.exceptions import RuleTableError, UnknownTileError
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


class AdjacencyRules:
    """Static lookup ``(tile, direction) -> tiles allowed on that side``.

    The table must be total over the alphabet and the direction set. Allowed
    sets may only reference tiles from the alphabet. Asymmetric tables are
    accepted, but a warning is logged because they tend to contradict early.
    """

    def __init__(
        self,
        alphabet: Sequence[str],
        allowed: Mapping[str, Mapping[Direction | str, Iterable[str]]],
    ) -> None:
        self.alphabet: Tuple[str, ...] = tuple(alphabet)
        if not self.alphabet:
            raise RuleTableError("Tile alphabet must not be empty")
        if len(set(self.alphabet)) != len(self.alphabet):
            raise RuleTableError(f"Tile alphabet contains duplicates: {list(self.alphabet)}")
        self._order: Dict[str, int] = {tile: index for index, tile in enumerate(self.alphabet)}
        self._table: Dict[Tuple[str, Direction], FrozenSet[str]] = {}

        for tile in self.alphabet:
            entry = allowed.get(tile)
            if entry is None:
                raise RuleTableError(f"Missing adjacency entry for tile '{tile}'")
            normalized = self._normalize_entry(tile, entry)
            for direction in DIRECTIONS:
                if direction not in normalized:
                    raise RuleTableError(
                        f"Tile '{tile}' has no rule for direction '{direction.value}'"
                    )
                neighbours = frozenset(normalized[direction])
                foreign = neighbours - set(self.alphabet)
                if foreign:
                    raise RuleTableError(
                        f"Tile '{tile}' {direction.value} references unknown tiles {sorted(foreign)}"
                    )
                self._table[(tile, direction)] = neighbours

        extra = set(allowed) - set(self.alphabet)
        if extra:
            raise RuleTableError(f"Rules declared for tiles outside the alphabet: {sorted(extra)}")

        if not self.is_symmetric():
            LOGGER.warning("Adjacency table is asymmetric; expect early contradictions")

    @staticmethod
    def _normalize_entry(
        tile: str, entry: Mapping[Direction | str, Iterable[str]]
    ) -> Dict[Direction, Iterable[str]]:
        normalized: Dict[Direction, Iterable[str]] = {}
        for key, neighbours in entry.items():
            try:
                direction = Direction(key)
            except ValueError as exc:
                raise RuleTableError(f"Tile '{tile}' uses unknown direction '{key}'") from exc
            if isinstance(neighbours, str):
                raise RuleTableError(
                    f"Tile '{tile}' {direction.value} must list tiles, got a bare string"
                )
            normalized[direction] = neighbours
        return normalized

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def uniform(
        cls, alphabet: Sequence[str], neighbours: Mapping[str, Iterable[str]]
    ) -> "AdjacencyRules":
        """Build a table where every tile allows the same set on all sides."""

        allowed = {
            tile: {direction: tuple(neighbours.get(tile, ())) for direction in DIRECTIONS}
            for tile in neighbours
        }
        return cls(alphabet, allowed)

    @classmethod
    def permissive(cls, alphabet: Sequence[str]) -> "AdjacencyRules":
        return cls.uniform(alphabet, {tile: tuple(alphabet) for tile in alphabet})

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "AdjacencyRules":
        """Build a table from the ``to_jsonable`` layout."""

        alphabet = payload.get("tiles")
        rules = payload.get("allowed")
        if not isinstance(alphabet, list) or not isinstance(rules, dict):
            raise RuleTableError("Rule payload needs a 'tiles' list and an 'allowed' object")
        return cls(alphabet, rules)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def allowed(self, tile: str, direction: Direction) -> FrozenSet[str]:
        try:
            return self._table[(tile, direction)]
        except KeyError:
            raise UnknownTileError(f"Tile '{tile}' is not part of the alphabet") from None

    def __contains__(self, tile: object) -> bool:
        return tile in self._order

    def __len__(self) -> int:
        return len(self.alphabet)

    def index_of(self, tile: str) -> int:
        try:
            return self._order[tile]
        except KeyError:
            raise UnknownTileError(f"Tile '{tile}' is not part of the alphabet") from None

    def ordered(self, tiles: Iterable[str]) -> List[str]:
        """Return ``tiles`` sorted by alphabet order."""
        return sorted(tiles, key=self.index_of)

    def compatible(self, tile: str, direction: Direction, neighbour: str) -> bool:
        """True when ``neighbour`` may sit on the ``direction`` side of ``tile``
        and ``tile`` may sit on the opposite side of ``neighbour``."""

        return neighbour in self.allowed(tile, direction) and tile in self.allowed(
            neighbour, direction.opposite
        )

    def is_symmetric(self) -> bool:
        for tile in self.alphabet:
            for direction in DIRECTIONS:
                for neighbour in self._table[(tile, direction)]:
                    if tile not in self._table[(neighbour, direction.opposite)]:
                        return False
        return True

    def to_jsonable(self) -> dict:
        return {
            "tiles": list(self.alphabet),
            "allowed": {
                tile: {
                    direction.value: self.ordered(self._table[(tile, direction)])
                    for direction in DIRECTIONS
                }
                for tile in self.alphabet
            },
        }
