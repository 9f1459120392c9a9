"""
Pygame renderer for the Columns game.

Draws the visible rows of the board, the next triplet preview, and a
sidebar with score / level information. Everything is read from an engine
Snapshot; the renderer never touches engine state.
"""

from __future__ import annotations

try:
    import pygame
except ImportError:
    pygame = None  # type: ignore[assignment]

from columns.game.engine import Snapshot
from columns.game.gems import GEM_COLORS


# ── Color constants ───────────────────────────────────────────────────────
BACKGROUND_COLOR = (30, 30, 30)
GRID_LINE_COLOR = (60, 60, 60)
BORDER_COLOR = (200, 200, 200)
TEXT_COLOR = (255, 255, 255)
SIDEBAR_BG_COLOR = (20, 20, 20)
EMPTY_CELL_COLOR = (40, 40, 40)


def preview_gems(snapshot: Snapshot) -> tuple[int, ...] | None:
    """Return the colors shown in the NEXT box.

    While the falling triplet is still inside the hidden rows the player
    cannot see it on the board, so the preview shows it instead of the
    pre-drawn next gems.
    """
    if snapshot.active_cells:
        width = snapshot.grid.shape[1]
        if snapshot.active_cells[0] < width * snapshot.hidden_rows:
            return snapshot.active_gems
    return snapshot.next_gems


class ColumnsRenderer:
    """Pygame-based renderer for a GridEngine snapshot.

    The window is divided into:
      - Left: board area (cell_size * width) x (cell_size * visible rows)
      - Right: sidebar with next triplet, score, level

    Attributes:
        width: Board width in cells.
        visible_height: Number of rendered rows (height minus hidden rows).
        cell_size: Pixel size of each grid cell.
        screen: Pygame display surface (created on first render).
    """

    SIDEBAR_WIDTH_CELLS: int = 5

    def __init__(self, width: int, visible_height: int, cell_size: int = 32) -> None:
        """Initialize the renderer.

        Does NOT create the Pygame window yet — that happens on the first
        call to render(), so headless environments don't open a window.
        """
        if pygame is None:
            raise ImportError("pygame is required for rendering. Install it: pip install pygame")

        self.width = width
        self.visible_height = visible_height
        self.cell_size = cell_size

        self.board_pixel_width = cell_size * width
        self.board_pixel_height = cell_size * visible_height
        self.sidebar_width = cell_size * self.SIDEBAR_WIDTH_CELLS
        self.window_width = self.board_pixel_width + self.sidebar_width
        self.window_height = self.board_pixel_height

        self.screen: pygame.Surface | None = None
        self._clock: pygame.time.Clock | None = None
        self._font: pygame.font.Font | None = None
        self._initialized: bool = False

    def render(self, snapshot: Snapshot, cleared_cells: int, level: int, fps: int = 60) -> float:
        """Draw a snapshot and wait for the next frame.

        Returns:
            Seconds elapsed since the previous frame.
        """
        if not self._initialized:
            self._init_pygame()

        self.screen.fill(BACKGROUND_COLOR)
        self._draw_board(snapshot)
        self._draw_sidebar(snapshot, cleared_cells, level)

        pygame.draw.rect(
            self.screen,
            BORDER_COLOR,
            (0, 0, self.board_pixel_width, self.board_pixel_height),
            2,
        )
        if snapshot.game_over:
            self._draw_game_over_overlay()

        pygame.display.flip()
        return self._clock.tick(fps) / 1000.0

    def _init_pygame(self) -> None:
        pygame.init()
        self.screen = pygame.display.set_mode((self.window_width, self.window_height))
        pygame.display.set_caption("Columns")
        self._clock = pygame.time.Clock()
        self._font = pygame.font.SysFont("monospace", 20)
        self._small_font = pygame.font.SysFont("monospace", 14)
        self._initialized = True

    def _draw_cell(self, x: int, y: int, gem: int, size: int) -> None:
        if gem != 0:
            color = GEM_COLORS[gem]
            pygame.draw.rect(self.screen, color, (x, y, size, size))
            darker = tuple(max(0, c - 40) for c in color)
            pygame.draw.rect(self.screen, darker, (x, y, size, size), 1)
        else:
            pygame.draw.rect(self.screen, EMPTY_CELL_COLOR, (x, y, size, size))
        pygame.draw.rect(self.screen, GRID_LINE_COLOR, (x, y, size, size), 1)

    def _draw_board(self, snapshot: Snapshot) -> None:
        """Draw the visible rows; the falling triplet is part of the grid."""
        visible = snapshot.visible()
        for row in range(self.visible_height):
            for col in range(self.width):
                self._draw_cell(
                    col * self.cell_size,
                    row * self.cell_size,
                    int(visible[row, col]),
                    self.cell_size,
                )

    def _draw_sidebar(self, snapshot: Snapshot, cleared_cells: int, level: int) -> None:
        sidebar_x = self.board_pixel_width
        pygame.draw.rect(
            self.screen,
            SIDEBAR_BG_COLOR,
            (sidebar_x, 0, self.sidebar_width, self.window_height),
        )
        pygame.draw.line(
            self.screen,
            BORDER_COLOR,
            (sidebar_x, 0),
            (sidebar_x, self.window_height),
            2,
        )

        margin = 15
        x_left = sidebar_x + margin

        self._draw_text("NEXT", x_left, 20)
        gems = preview_gems(snapshot)
        if gems:
            for i, gem in enumerate(gems):
                self._draw_cell(x_left, 45 + i * self.cell_size, int(gem), self.cell_size)

        text_y = 60 + 3 * self.cell_size
        self._draw_text("SCORE", x_left, text_y)
        self._draw_text(str(cleared_cells), x_left, text_y + 25)

        text_y += 65
        self._draw_text("LEVEL", x_left, text_y)
        self._draw_text(str(level), x_left, text_y + 25)

    def _draw_game_over_overlay(self) -> None:
        """Semi-transparent game over overlay with restart instructions."""
        overlay = pygame.Surface(
            (self.board_pixel_width, self.board_pixel_height), pygame.SRCALPHA
        )
        overlay.fill((0, 0, 0, 150))
        self.screen.blit(overlay, (0, 0))

        text_go = self._font.render("GAME OVER", True, (255, 50, 50))
        text_restart = self._small_font.render("R to restart", True, TEXT_COLOR)
        text_quit = self._small_font.render("ESC to quit", True, (200, 200, 200))

        cx = self.board_pixel_width // 2
        cy = self.board_pixel_height // 2
        self.screen.blit(text_go, (cx - text_go.get_width() // 2, cy - 40))
        self.screen.blit(text_restart, (cx - text_restart.get_width() // 2, cy + 10))
        self.screen.blit(text_quit, (cx - text_quit.get_width() // 2, cy + 30))

    def _draw_text(self, text: str, x: int, y: int, color: tuple[int, int, int] = TEXT_COLOR) -> None:
        surface = self._font.render(text, True, color)
        self.screen.blit(surface, (x, y))

    def close(self) -> None:
        """Shut down Pygame and close the window."""
        if self._initialized:
            pygame.quit()
            self._initialized = False
