"""
Gem colors, the falling triplet, and the next-gems spawn algorithm.

Coordinate convention (same as the grid):
  - Row 0 is the top and row increases downward.
  - Column 0 is the left edge and column increases rightward.
"""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass

# =============================================================================
# Gem Colors (RGB), indexed by gem ID. ID 0 is the empty cell.
# =============================================================================

COLOR_EMPTY  = (0, 0, 0)
COLOR_RED    = (230, 41, 55)
COLOR_BLUE   = (0, 121, 241)
COLOR_GREEN  = (0, 228, 48)
COLOR_YELLOW = (253, 249, 0)
COLOR_ORANGE = (255, 161, 0)
COLOR_PINK   = (255, 109, 194)
COLOR_PURPLE = (200, 122, 255)

GEM_COLORS: tuple[tuple[int, int, int], ...] = (
    COLOR_EMPTY,
    COLOR_RED,
    COLOR_BLUE,
    COLOR_GREEN,
    COLOR_YELLOW,
    COLOR_ORANGE,
    COLOR_PINK,
    COLOR_PURPLE,
)

NUM_GEMS = len(GEM_COLORS) - 1  # 7 playable colors, IDs 1..7

# Offsets (dx, dy) of the three triplet cells relative to the origin (top cell).
TRIPLET_OFFSETS: tuple[tuple[int, int], ...] = ((0, 0), (0, 1), (0, 2))


@dataclass(frozen=True)
class ActivePiece:
    """The falling triplet, described by its top cell and rotation count.

    Member cells are always derived from `origin` plus TRIPLET_OFFSETS, so
    shifting, rotating and falling can never leave them out of sync.
    """

    origin: tuple[int, int]
    orientation: int = 0

    def cells(self) -> list[tuple[int, int]]:
        """Return the (x, y) positions of the triplet, top to bottom."""
        ox, oy = self.origin
        return [(ox + dx, oy + dy) for dx, dy in TRIPLET_OFFSETS]

    @property
    def column(self) -> int:
        return self.origin[0]

    @property
    def bottom(self) -> tuple[int, int]:
        return self.cells()[-1]

    def shifted(self, dx: int, dy: int) -> ActivePiece:
        ox, oy = self.origin
        return ActivePiece((ox + dx, oy + dy), self.orientation)

    def rotated(self) -> ActivePiece:
        return ActivePiece(self.origin, (self.orientation + 1) % len(TRIPLET_OFFSETS))


class SpawnBranch(enum.Enum):
    """Color composition of a freshly drawn triplet."""
    ALL_DISTINCT = "all_distinct"
    PAIR = "pair"
    ALL_SAME = "all_same"


def _draw_gem(rng: random.Random) -> int:
    return rng.randint(1, NUM_GEMS)


def classify_spawn(
    r: float,
    level: int,
    spawn_chances: tuple[float, float, float],
    decay: float,
) -> SpawnBranch:
    """Map a uniform draw to a spawn branch.

    Both thresholds shrink by `decay ** level`, so higher levels make the
    all-distinct branch more likely.

    Args:
        r: Uniform random value in [0, 1).
        level: Current level (cleared cells // 10).
        spawn_chances: Cumulative thresholds; only indices 1 and 2 are used.
        decay: Per-level multiplier applied to the thresholds (< 1).

    Returns:
        The SpawnBranch selected by r.
    """
    scale = decay ** level
    if r > spawn_chances[2] * scale:
        return SpawnBranch.ALL_DISTINCT
    if r > spawn_chances[1] * scale:
        return SpawnBranch.PAIR
    return SpawnBranch.ALL_SAME


def draw_next_gems(
    rng: random.Random,
    level: int,
    spawn_chances: tuple[float, float, float],
    decay: float,
) -> tuple[SpawnBranch, tuple[int, int, int]]:
    """Draw the colors of the next triplet.

    Repeated colors are avoided by rejection sampling: a slot that collides
    with an already chosen one is simply redrawn.

    Returns:
        (branch, gems) where gems lists the colors top to bottom.
    """
    branch = classify_spawn(rng.random(), level, spawn_chances, decay)

    first = _draw_gem(rng)
    if branch is SpawnBranch.ALL_SAME:
        return branch, (first, first, first)

    if branch is SpawnBranch.PAIR:
        third = _draw_gem(rng)
        while third == first:
            third = _draw_gem(rng)
        return branch, (first, first, third)

    second = _draw_gem(rng)
    while second == first:
        second = _draw_gem(rng)
    third = _draw_gem(rng)
    while third in (first, second):
        third = _draw_gem(rng)
    return branch, (first, second, third)
