"""
Manual play mode.

The play loop is the host around GridEngine: it polls the keyboard,
debounces intents, owns the tick cadence and renders a snapshot per frame.
"""

from __future__ import annotations

import logging
from typing import Any

try:
    import pygame
except ImportError:
    pygame = None  # type: ignore[assignment]

from columns.game.engine import EngineConfig, GridEngine
from columns.renderer import ColumnsRenderer
from columns.scheduler import InputDebouncer, ScoreKeeper, TickScheduler

logger = logging.getLogger(__name__)


# ── Keyboard mapping for manual play ─────────────────────────────────────
# Arrow keys: left/right shift, up rotates, down soft-drops.
KEY_MAP: dict[str, int] = {}
if pygame is not None:
    KEY_MAP = {
        "left": pygame.K_LEFT,
        "right": pygame.K_RIGHT,
        "rotate": pygame.K_UP,
        "drop": pygame.K_DOWN,
    }


def play_manual(config: dict[str, Any]) -> None:
    """Run the game in manual (human) play mode.

    Controls:
      - Left/Right arrow: shift the triplet
      - Up arrow: rotate the triplet's colors
      - Down arrow: soft drop until the triplet lands
      - R: restart after game over
      - Escape / close window: quit

    Args:
        config: Config dict loaded from columns.yaml.
    """
    if pygame is None:
        raise ImportError("pygame is required for play mode. Install it: pip install pygame")

    engine = GridEngine(EngineConfig.from_dict(config))
    scheduler = TickScheduler.from_config(config)
    debouncer = InputDebouncer(debounce_time=config.get("debounce_time", 0.15))
    score = ScoreKeeper(cells_per_level=config.get("cells_per_level", 10))
    renderer = ColumnsRenderer(
        engine.width,
        engine.height - engine.hidden_rows,
        cell_size=config.get("cell_size", 32),
    )
    fps = config.get("fps", 60)

    # Force renderer init before event loop (pygame must be initialized for event.get())
    dt = renderer.render(engine.snapshot(), score.cleared_cells, score.level, fps)

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                break
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                    break
                if engine.game_over and event.key == pygame.K_r:
                    engine.reset()
                    scheduler.reset()
                    debouncer.reset()
                    score.reset()
                    logger.info("Restarted")

        if not running:
            break

        if not engine.game_over:
            keys = pygame.key.get_pressed()
            intents = {name: debouncer.allow(name, bool(keys[key])) for name, key in KEY_MAP.items()}
            if intents["drop"]:
                scheduler.soft_drop()
            engine.apply_input(intents["left"], intents["right"], intents["rotate"])

            if scheduler.consume(dt):
                previous = engine.phase
                cleared = engine.tick(score.level)
                if cleared:
                    score.add(cleared)
                scheduler.retime(previous, engine.phase, score.level)
                if engine.game_over:
                    logger.info("Game over | Cleared: %d | Level: %d", score.cleared_cells, score.level)

        dt = renderer.render(engine.snapshot(), score.cleared_cells, score.level, fps)

    renderer.close()
