"""Game logic: grid, gems, and the Columns engine."""

from columns.game.gems import GEM_COLORS, NUM_GEMS, ActivePiece, SpawnBranch, draw_next_gems
from columns.game.grid import Grid
from columns.game.engine import ConfigError, EngineConfig, GridEngine, Phase, Snapshot

__all__ = [
    "GEM_COLORS",
    "NUM_GEMS",
    "ActivePiece",
    "SpawnBranch",
    "draw_next_gems",
    "Grid",
    "ConfigError",
    "EngineConfig",
    "GridEngine",
    "Phase",
    "Snapshot",
]
