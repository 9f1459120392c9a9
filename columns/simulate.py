"""
Headless simulation of many Columns sessions with random intents.

Useful for soak testing the engine and for checking how spawn settings
shape game length. Each session runs until game over (or max_ticks) and
the results are aggregated with numpy.
"""

from __future__ import annotations

import random
import time
from typing import Any

import numpy as np

from columns.game.engine import EngineConfig, GridEngine
from columns.game.gems import SpawnBranch
from columns.scheduler import ScoreKeeper


def play_session(
    engine: GridEngine,
    rng: random.Random,
    cells_per_level: int = 10,
    max_ticks: int = 100_000,
    input_chance: float = 0.3,
) -> dict[str, Any]:
    """Play one session, feeding a random intent before every tick.

    Args:
        engine: A freshly reset GridEngine.
        rng: Random generator for the intents.
        cells_per_level: Cleared cells per level.
        max_ticks: Safety cap on the number of ticks.
        input_chance: Probability of sending each intent on a tick.

    Returns:
        Dict with cleared, level, ticks, spawns, game_over and branch counts.
    """
    score = ScoreKeeper(cells_per_level=cells_per_level)
    ticks = 0
    while not engine.game_over and ticks < max_ticks:
        engine.apply_input(
            rng.random() < input_chance,
            rng.random() < input_chance,
            rng.random() < input_chance,
        )
        cleared = engine.tick(score.level)
        if cleared:
            score.add(cleared)
        ticks += 1

    return {
        "cleared": score.cleared_cells,
        "level": score.level,
        "ticks": ticks,
        "spawns": engine.spawns,
        "game_over": engine.game_over,
        "branches": dict(engine.branch_counts),
    }


def simulate(
    config: dict[str, Any],
    games: int = 100,
    seed: int | None = None,
    max_ticks: int = 100_000,
    verbose: bool = True,
) -> list[dict[str, Any]]:
    """Run several sessions and print aggregate statistics.

    Args:
        config: Config dict loaded from columns.yaml.
        games: Number of sessions to play.
        seed: Seed for both the engine and the intent generator.
        max_ticks: Per-session tick cap.
        verbose: Print progress and the summary.

    Returns:
        One result dict per session (see play_session).
    """
    engine_config = EngineConfig.from_dict({**config, "seed": seed if seed is not None else config.get("seed")})
    engine = GridEngine(engine_config)
    rng = random.Random(engine_config.seed)
    cells_per_level = config.get("cells_per_level", 10)

    results = []
    start_time = time.time()
    for game in range(games):
        engine.reset()
        result = play_session(engine, rng, cells_per_level=cells_per_level, max_ticks=max_ticks)
        results.append(result)
        if verbose and (game + 1) % 10 == 0:
            print(f"  Game {game + 1}/{games} done | "
                  f"Cleared: {result['cleared']}, Level: {result['level']}, Ticks: {result['ticks']}")

    if verbose:
        elapsed = time.time() - start_time
        print(f"\nSimulation complete in {elapsed:.1f}s\n")
        print_summary(results)
    return results


def print_summary(results: list[dict[str, Any]]) -> None:
    """Print mean/std/min/max per metric and the overall spawn branch mix."""
    if not results:
        print("No games played.")
        return

    for key in ("cleared", "level", "ticks", "spawns"):
        values = np.array([r[key] for r in results])
        print(f"  {key:<8} mean {values.mean():8.1f}  std {values.std():8.1f}  "
              f"min {values.min():6d}  max {values.max():6d}")

    totals = {branch: sum(r["branches"].get(branch, 0) for r in results) for branch in SpawnBranch}
    drawn = sum(totals.values()) or 1
    print("\n  Spawn branches:")
    for branch, count in totals.items():
        print(f"    {branch.value:<13} {count:7d}  ({count / drawn:.1%})")

    unfinished = sum(1 for r in results if not r["game_over"])
    if unfinished:
        print(f"\n  {unfinished} game(s) hit the tick cap before game over")
