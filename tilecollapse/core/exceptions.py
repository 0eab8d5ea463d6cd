"""Custom exception hierarchy for tile-collapse generation."""


class TileCollapseError(Exception):
    """Base exception for solver and generator failures."""


class ConfigurationError(TileCollapseError):
    """Raised when a solver or generator is constructed with invalid settings."""


class RuleTableError(ConfigurationError):
    """Raised when an adjacency rule table is empty, partial or malformed."""


class UnknownTileError(RuleTableError):
    """Raised when a tile outside the declared alphabet is looked up."""


class OutOfBoundsError(TileCollapseError, IndexError):
    """Raised when a coordinate outside the grid is queried or mutated."""


class GenerationError(TileCollapseError):
    """Raised when no attempt produced a complete grid."""


class ValidationError(TileCollapseError):
    """Raised when a finished grid breaks an adjacency rule."""


class CellStateError(TileCollapseError):
    """Raised when a cell mutation would add candidates or re-collapse a cell."""
