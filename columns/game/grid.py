"""
Grid logic for a Columns board.

The grid is a 2D numpy array (height x width) of int8 values:
  - 0 = empty cell
  - 1-7 = gem color ID

Cells are also addressed by a flat row-major index (idx = x + y * width),
which is how match results and the active piece are reported to the host.
The top `hidden_rows` rows belong to the grid but are never rendered; the
engine uses them for spawning and game-over detection.
"""

from __future__ import annotations

import numpy as np

EMPTY = 0

# Axes checked by match detection, as (dx, dy) from the center cell to the
# "next" cell: horizontal, vertical, main diagonal, anti-diagonal.
MATCH_AXES: tuple[tuple[int, int], ...] = ((1, 0), (0, 1), (1, 1), (1, -1))


class Grid:
    """Columns grid with gravity, match detection and clearing.

    Attributes:
        width: Number of columns.
        height: Number of rows, hidden rows included.
        cells: 2D numpy array of shape (height, width), dtype int8.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.cells = np.zeros((self.height, self.width), dtype=np.int8)

    # -- coordinates --------------------------------------------------------

    def idx_xy(self, idx: int) -> tuple[int, int]:
        """Convert a flat index to (x, y)."""
        y, x = divmod(int(idx), self.width)
        return x, y

    def xy_idx(self, x: int, y: int) -> int:
        """Convert (x, y) to a flat index."""
        return y * self.width + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def __getitem__(self, pos: tuple[int, int]) -> int:
        x, y = pos
        return int(self.cells[y, x])

    def __setitem__(self, pos: tuple[int, int], value: int) -> None:
        x, y = pos
        self.cells[y, x] = value

    def is_empty(self, x: int, y: int) -> bool:
        return self.cells[y, x] == EMPTY

    def row_occupied(self, y: int) -> bool:
        """Return True if any cell of row y holds a gem."""
        return bool(np.any(self.cells[y] != EMPTY))

    def filled_count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def get_grid(self) -> np.ndarray:
        """Return a copy of the grid array.

        Returns:
            A numpy array of shape (height, width), dtype int8.
        """
        return self.cells.copy()

    def reset(self) -> None:
        """Clear the entire grid, setting all cells to 0."""
        self.cells = np.zeros((self.height, self.width), dtype=np.int8)

    # -- gravity ------------------------------------------------------------

    def drop(self) -> np.ndarray:
        """Let every unsupported gem fall by exactly one row.

        Rows are processed bottom-to-top against the grid being built, so a
        stack hanging over a gap moves down together, one row per call.
        The bottom row never moves.

        Returns:
            Boolean mask (height x width) of the source cells that moved.
        """
        old = self.cells
        new = np.zeros_like(old)
        moved = np.zeros(old.shape, dtype=bool)

        new[self.height - 1] = old[self.height - 1]
        for y in range(self.height - 2, -1, -1):
            row = old[y]
            filled = row != EMPTY
            falls = filled & (new[y + 1] == EMPTY)
            stays = filled & ~falls
            new[y + 1][falls] = row[falls]
            new[y][stays] = row[stays]
            moved[y] = falls

        self.cells = new
        return moved

    def is_static(self) -> bool:
        """Return True if no gem has an empty cell directly beneath it."""
        filled_above = self.cells[:-1] != EMPTY
        empty_below = self.cells[1:] == EMPTY
        return not bool(np.any(filled_above & empty_below))

    # -- matching -----------------------------------------------------------

    def _axis_centers(self, dx: int, dy: int) -> np.ndarray:
        """Mask of cells that center a run of three equal gems along (dx, dy)."""
        h, w = self.height, self.width
        ry = 1 if dy else 0
        rx = 1 if dx else 0
        g = self.cells
        center = g[ry:h - ry, rx:w - rx]
        prev = g[ry - dy:h - ry - dy, rx - dx:w - rx - dx]
        nxt = g[ry + dy:h - ry + dy, rx + dx:w - rx + dx]

        mask = np.zeros(g.shape, dtype=bool)
        if center.size:
            mask[ry:h - ry, rx:w - rx] = (center != EMPTY) & (center == prev) & (center == nxt)
        return mask

    def next_match(self) -> list[int]:
        """Collect the flat indices of every centered three-gem run.

        Cells are visited in reverse index order (bottom-right to top-left);
        each axis that matches at a cell contributes [center, previous, next].
        An index can appear more than once when runs overlap.

        Returns:
            List of flat indices to clear, empty if the grid has no match.
        """
        masks = [(dx, dy, self._axis_centers(dx, dy)) for dx, dy in MATCH_AXES]
        any_center = np.zeros(self.cells.shape, dtype=bool)
        for _, _, mask in masks:
            any_center |= mask

        matching: list[int] = []
        for idx in np.flatnonzero(any_center)[::-1]:
            x, y = self.idx_xy(idx)
            for dx, dy, mask in masks:
                if mask[y, x]:
                    matching.extend((
                        int(idx),
                        self.xy_idx(x - dx, y - dy),
                        self.xy_idx(x + dx, y + dy),
                    ))
        return matching

    def clear(self, indices: list[int]) -> int:
        """Empty the given cells.

        Args:
            indices: Flat indices, duplicates allowed.

        Returns:
            Number of cells that held a gem when they were cleared.
        """
        flat = self.cells.reshape(-1)
        cleared = 0
        for idx in indices:
            if flat[idx] != EMPTY:
                flat[idx] = EMPTY
                cleared += 1
        return cleared
