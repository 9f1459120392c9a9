"""
Game engine — falling triplet, gravity, matching, spawning and game over.

This module ties the Grid and the gem definitions together into the Columns
state machine. The host drives it with three calls:

  - apply_input(left, right, rotate) once per accepted input frame;
  - tick(level) whenever its scheduler says a simulation step is due;
  - snapshot() for rendering.

Each tick performs exactly one step of work (one gravity row, one landing,
one clear, or one spawn), so a cascade plays out over several host frames.
The engine never reads a clock: drop speed and soft drop belong to the host.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from columns.game.gems import ActivePiece, SpawnBranch, draw_next_gems
from columns.game.grid import EMPTY, Grid

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the engine cannot build a valid grid from its settings."""


class Phase(enum.Enum):
    """Where the tick state machine currently stands."""
    FALLING = "falling"
    RESOLVING = "resolving"
    MATCHING = "matching"
    SPAWNING = "spawning"
    GAME_OVER = "game_over"


@dataclass
class EngineConfig:
    """Settings fixed for the lifetime of a game session.

    Attributes:
        width: Board width in columns.
        height: Board height in rows, hidden rows included.
        hidden_rows: Topmost rows used for spawning and game over, never drawn.
        spawn_column: Column new triplets appear in (None = width // 2 - 1).
        spawn_chances: Cumulative spawn thresholds (see gems.classify_spawn).
        spawn_chance_decay: Per-level multiplier applied to the thresholds.
        seed: Seed for the engine's random generator (None = OS entropy).
    """
    width: int = 6
    height: int = 16
    hidden_rows: int = 2
    spawn_column: int | None = None
    spawn_chances: tuple[float, float, float] = (0.0, 0.2, 0.95)
    spawn_chance_decay: float = 0.99
    seed: int | None = None

    KEYS = (
        ("board_width", "width"),
        ("board_height", "height"),
        ("hidden_rows", "hidden_rows"),
        ("spawn_column", "spawn_column"),
        ("spawn_chances", "spawn_chances"),
        ("spawn_chance_decay", "spawn_chance_decay"),
        ("seed", "seed"),
    )

    def __post_init__(self) -> None:
        self.spawn_chances = tuple(float(c) for c in self.spawn_chances)
        self.validate()

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> EngineConfig:
        """Build an EngineConfig from a loaded YAML config dict.

        Unknown keys (renderer, scheduler settings) are ignored.
        """
        kwargs = {attr: config[key] for key, attr in cls.KEYS if config.get(key) is not None}
        return cls(**kwargs)

    @property
    def resolved_spawn_column(self) -> int:
        if self.spawn_column is None:
            return max(0, self.width // 2 - 1)
        return self.spawn_column

    def validate(self) -> None:
        """Check that a grid can be built from these settings.

        Raises:
            ConfigError: Describing the first invalid setting found.
        """
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(
                f"Board size must be positive, got {self.width}x{self.height}"
            )
        if self.hidden_rows < 1:
            raise ConfigError(f"hidden_rows must be at least 1, got {self.hidden_rows}")
        if self.hidden_rows >= self.height:
            raise ConfigError(
                f"hidden_rows ({self.hidden_rows}) must be smaller than height ({self.height})"
            )
        if self.height < self.hidden_rows + 3:
            raise ConfigError(
                f"height ({self.height}) leaves no room for a triplet below "
                f"{self.hidden_rows} hidden rows"
            )
        if not 0 <= self.resolved_spawn_column < self.width:
            raise ConfigError(
                f"spawn_column {self.resolved_spawn_column} is outside a {self.width}-wide board"
            )
        if len(self.spawn_chances) != 3:
            raise ConfigError(f"spawn_chances needs 3 thresholds, got {len(self.spawn_chances)}")
        c0, c1, c2 = self.spawn_chances
        if not 0.0 <= c0 <= c1 <= c2 <= 1.0:
            raise ConfigError(
                f"spawn_chances must be non-decreasing within [0, 1], got {self.spawn_chances}"
            )
        if not 0.0 < self.spawn_chance_decay <= 1.0:
            raise ConfigError(
                f"spawn_chance_decay must be in (0, 1], got {self.spawn_chance_decay}"
            )


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the engine handed to the renderer.

    Attributes:
        grid: Copy of the full grid (height x width, int8), hidden rows included.
        active_cells: Flat indices of the falling triplet, top to bottom, or ().
        next_gems: Colors of the next triplet, or None.
        game_over: True once the session has ended.
        phase: Phase of the tick state machine.
        hidden_rows: Number of rows at the top that are not drawn.
    """
    grid: np.ndarray
    active_cells: tuple[int, ...]
    next_gems: tuple[int, int, int] | None
    game_over: bool
    phase: Phase
    hidden_rows: int = 2
    active_gems: tuple[int, ...] = field(default=())

    def visible(self) -> np.ndarray:
        """Return the rendered part of the grid (hidden rows removed)."""
        return self.grid[self.hidden_rows:]


class GridEngine:
    """Columns simulation: one grid, one optional falling triplet.

    Attributes:
        config: The EngineConfig this session was built from.
        grid: The Grid holding static and falling gems alike.
        piece: The falling ActivePiece, or None.
        next_gems: Pre-drawn colors of the next triplet.
        game_over: Whether the session has ended.
        spawns: Number of triplets spawned so far.
        branch_counts: How often each spawn branch was drawn.
    """

    def __init__(self, config: EngineConfig | None = None, **overrides: Any) -> None:
        """Initialize a new session.

        Args:
            config: Engine settings; defaults to a standard 6x16 board.
            **overrides: Field overrides applied on top of `config`.

        Raises:
            ConfigError: If the settings cannot describe a valid grid.
        """
        if config is None:
            config = EngineConfig(**overrides)
        elif overrides:
            config = EngineConfig(**{**config.__dict__, **overrides})
        self.config = config
        self.rng = random.Random(config.seed)
        self.grid = Grid(config.width, config.height)
        self.piece: ActivePiece | None = None
        self.next_gems: tuple[int, int, int] | None = None
        self.game_over: bool = False
        self.spawns: int = 0
        self.branch_counts: dict[SpawnBranch, int] = {}
        self.reset()

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def hidden_rows(self) -> int:
        return self.config.hidden_rows

    def reset(self) -> None:
        """Clear the board and pre-draw the first triplet."""
        self.grid.reset()
        self.piece = None
        self.game_over = False
        self.spawns = 0
        self.branch_counts = {branch: 0 for branch in SpawnBranch}
        self.next_gems = self._draw_next(0)

    # -- host interface -----------------------------------------------------

    def apply_input(self, left: bool, right: bool, rotate: bool) -> None:
        """Shift and/or rotate the falling triplet.

        Shifting is all-or-nothing: the triplet moves one column only if all
        three destination cells are empty. Rotation cycles the colors
        top -> middle -> bottom -> top and never fails.

        Args:
            left: Shift one column left.
            right: Shift one column right (ignored if left applies).
            rotate: Cycle the triplet's colors.
        """
        if self.piece is None or self.game_over:
            return

        x = self.piece.column
        if left and x > 0:
            dx = -1
        elif right and x < self.width - 1:
            dx = 1
        else:
            dx = 0

        if dx != 0 and not self._collides(dx):
            cells = self.piece.cells()
            values = [self.grid[pos] for pos in cells]
            for pos in cells:
                self.grid[pos] = EMPTY
            for (cx, cy), value in zip(cells, values):
                self.grid[cx + dx, cy] = value
            self.piece = self.piece.shifted(dx, 0)

        if rotate:
            cells = self.piece.cells()
            top, middle, bottom = (self.grid[pos] for pos in cells)
            for pos, value in zip(cells, (bottom, top, middle)):
                self.grid[pos] = value
            self.piece = self.piece.rotated()

    def tick(self, level: int) -> int:
        """Advance the state machine by exactly one step.

        Args:
            level: Current level, used for the next spawn draw.

        Returns:
            Number of cells cleared by this step (0 unless a match cleared).
        """
        if self.game_over:
            return 0

        if not self.grid.is_static():
            self._drop()
            return 0

        if self.piece is not None:
            # Landed: the triplet becomes ordinary board content.
            self.piece = None
            return 0

        matching = self.grid.next_match()
        if matching:
            cleared = self.grid.clear(matching)
            logger.debug("Cleared %d cells", cleared)
            return cleared

        if self.check_game_over():
            self.game_over = True
            logger.info("Game over after %d spawns", self.spawns)
            return 0

        self._spawn(level)
        return 0

    def snapshot(self) -> Snapshot:
        """Return a read-only copy of everything the renderer needs."""
        cells = self.piece.cells() if self.piece is not None else []
        return Snapshot(
            grid=self.grid.get_grid(),
            active_cells=tuple(self.grid.xy_idx(x, y) for x, y in cells),
            next_gems=self.next_gems,
            game_over=self.game_over,
            phase=self.phase,
            hidden_rows=self.hidden_rows,
            active_gems=tuple(self.grid[pos] for pos in cells),
        )

    @property
    def phase(self) -> Phase:
        if self.game_over:
            return Phase.GAME_OVER
        if self.piece is not None:
            return Phase.FALLING
        if not self.grid.is_static():
            return Phase.RESOLVING
        if self.grid.next_match():
            return Phase.MATCHING
        return Phase.SPAWNING

    # -- internals ----------------------------------------------------------

    def is_static(self) -> bool:
        return self.grid.is_static()

    def check_game_over(self) -> bool:
        """Return True if a new triplet may not be spawned.

        The last hidden row must be empty, and so must the three spawn cells.
        """
        if self.grid.row_occupied(self.hidden_rows - 1):
            return True
        spawn = ActivePiece((self.config.resolved_spawn_column, 0))
        return any(not self.grid.is_empty(x, y) for x, y in spawn.cells())

    def _collides(self, dx: int) -> bool:
        """Return True if any triplet cell has a gem one column over."""
        return any(not self.grid.is_empty(x + dx, y) for x, y in self.piece.cells())

    def _drop(self) -> None:
        moved = self.grid.drop()
        if self.piece is not None:
            bx, by = self.piece.bottom
            if moved[by, bx]:
                self.piece = self.piece.shifted(0, 1)

    def _draw_next(self, level: int) -> tuple[int, int, int]:
        branch, gems = draw_next_gems(
            self.rng, level, self.config.spawn_chances, self.config.spawn_chance_decay
        )
        self.branch_counts[branch] += 1
        return gems

    def _spawn(self, level: int) -> None:
        """Place the pre-drawn gems at the spawn column and draw the next ones."""
        piece = ActivePiece((self.config.resolved_spawn_column, 0))
        for pos, gem in zip(piece.cells(), self.next_gems):
            self.grid[pos] = gem
        self.piece = piece
        self.spawns += 1
        logger.debug("Spawned %s at column %d", self.next_gems, piece.column)
        self.next_gems = self._draw_next(level)
