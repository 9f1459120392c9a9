import random

import numpy as np
import pytest

from columns.game.engine import ConfigError, EngineConfig, GridEngine, Phase
from columns.game.gems import ActivePiece


def make_engine(**overrides):
    overrides.setdefault("seed", 0)
    return GridEngine(**overrides)


def spawn(engine, gems):
    """Force the next triplet's colors and tick once to spawn it."""
    engine.next_gems = gems
    assert engine.phase is Phase.SPAWNING
    engine.tick(0)
    assert engine.piece is not None


def fill_column(engine, x, top):
    """Fill column x from row `top` to the bottom with alternating, non-matching gems."""
    for y in range(top, engine.height):
        engine.grid[x, y] = 1 if y % 2 else 2


def test_new_engine_has_next_gems_and_waits_to_spawn():
    engine = make_engine()
    assert engine.width == 6 and engine.height == 16
    assert engine.piece is None
    assert engine.next_gems is not None
    assert all(1 <= g <= 7 for g in engine.next_gems)
    assert engine.phase is Phase.SPAWNING
    assert engine.snapshot().next_gems == engine.next_gems


@pytest.mark.parametrize(
    "overrides",
    [
        {"width": 0},
        {"height": -1},
        {"hidden_rows": 0},
        {"hidden_rows": 16},
        {"height": 4},
        {"spawn_column": 6},
        {"spawn_chances": (0.0, 0.95, 0.2)},
        {"spawn_chances": (0.0, 0.2)},
        {"spawn_chance_decay": 0.0},
        {"spawn_chance_decay": 1.5},
    ],
)
def test_invalid_configuration_fails_fast(overrides):
    with pytest.raises(ConfigError):
        GridEngine(**overrides)


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        EngineConfig(width=3, height=3)


def test_from_dict_ignores_host_settings():
    config = EngineConfig.from_dict({"board_width": 8, "board_height": 20, "fps": 30, "seed": None})
    assert (config.width, config.height, config.hidden_rows) == (8, 20, 2)
    assert config.resolved_spawn_column == 3


def test_first_tick_spawns_predrawn_gems_at_spawn_column():
    engine = make_engine()
    gems = engine.next_gems
    assert engine.tick(0) == 0

    snapshot = engine.snapshot()
    assert snapshot.active_cells == (2, 8, 14)
    assert snapshot.active_gems == gems
    assert snapshot.phase is Phase.FALLING
    assert engine.spawns == 1
    assert engine.next_gems is not None


def test_triplet_falls_one_row_per_tick_and_lands():
    engine = make_engine()
    spawn(engine, (1, 2, 3))

    for row in range(1, 14):
        assert engine.tick(0) == 0
        assert engine.snapshot().active_cells == (2 + 6 * row, 8 + 6 * row, 14 + 6 * row)

    assert engine.is_static()
    assert engine.phase is Phase.FALLING

    assert engine.tick(0) == 0  # landing releases the triplet
    assert engine.piece is None
    assert [engine.grid[2, y] for y in (13, 14, 15)] == [1, 2, 3]
    assert engine.phase is Phase.SPAWNING

    assert engine.tick(0) == 0
    assert engine.spawns == 2
    assert engine.snapshot().active_cells == (2, 8, 14)
    assert not engine.game_over


def test_single_color_triplet_clears_itself_after_landing():
    engine = make_engine()
    spawn(engine, (4, 4, 4))
    for _ in range(14):
        engine.tick(0)
    assert engine.piece is None
    assert engine.phase is Phase.MATCHING

    assert engine.tick(0) == 3
    assert engine.grid.filled_count() == 0
    assert engine.phase is Phase.SPAWNING


def test_shift_is_rejected_when_a_destination_is_occupied():
    engine = make_engine()
    spawn(engine, (1, 2, 3))
    engine.grid[1, 2] = 5
    before = engine.grid.get_grid()

    engine.apply_input(True, False, False)
    assert np.array_equal(engine.grid.cells, before)
    assert engine.piece.column == 2


def test_shift_moves_all_three_cells():
    engine = make_engine()
    spawn(engine, (1, 2, 3))

    engine.apply_input(False, True, False)
    assert engine.piece.column == 3
    assert [engine.grid[3, y] for y in range(3)] == [1, 2, 3]
    assert [engine.grid[2, y] for y in range(3)] == [0, 0, 0]
    assert engine.snapshot().active_cells == (3, 9, 15)


def test_shift_stops_at_walls():
    engine = make_engine()
    for y, gem in zip(range(5, 8), (1, 2, 3)):
        engine.grid[0, y] = gem
    engine.piece = ActivePiece((0, 5))

    engine.apply_input(True, False, False)
    assert engine.piece.column == 0

    # Left is blocked by the wall, so right applies.
    engine.apply_input(True, True, False)
    assert engine.piece.column == 1

    engine.apply_input(True, True, False)
    assert engine.piece.column == 0


def test_rotation_cycles_colors_downwards():
    engine = make_engine()
    spawn(engine, (1, 2, 3))

    engine.apply_input(False, False, True)
    assert [engine.grid[2, y] for y in range(3)] == [3, 1, 2]
    assert engine.piece.orientation == 1

    engine.apply_input(False, False, True)
    engine.apply_input(False, False, True)
    assert [engine.grid[2, y] for y in range(3)] == [1, 2, 3]


def test_rotation_ignores_surrounding_gems():
    engine = make_engine()
    spawn(engine, (1, 2, 3))
    for x in (1, 3):
        for y in range(3):
            engine.grid[x, y] = 6

    engine.apply_input(True, True, True)
    assert engine.piece.column == 2
    assert [engine.grid[2, y] for y in range(3)] == [3, 1, 2]


def test_input_without_triplet_is_noop():
    engine = make_engine()
    engine.grid[0, 15] = 1
    before = engine.grid.get_grid()
    engine.apply_input(True, True, True)
    assert np.array_equal(engine.grid.cells, before)


def test_loose_gems_settle_before_anything_else():
    engine = make_engine()
    engine.grid[0, 5] = 1
    assert engine.phase is Phase.RESOLVING
    assert engine.tick(0) == 0
    assert engine.grid[0, 6] == 1
    assert engine.spawns == 0


def test_game_over_when_last_hidden_row_is_occupied():
    engine = make_engine()
    fill_column(engine, 0, top=1)
    assert engine.is_static()
    assert engine.check_game_over()

    assert engine.tick(0) == 0
    assert engine.game_over
    assert engine.phase is Phase.GAME_OVER

    for _ in range(5):
        assert engine.tick(0) == 0
    assert engine.piece is None
    assert engine.spawns == 0
    assert engine.snapshot().game_over


def test_tall_column_below_hidden_rows_still_allows_spawn():
    engine = make_engine()
    fill_column(engine, 0, top=2)
    assert not engine.check_game_over()
    engine.tick(0)
    assert not engine.game_over
    assert engine.spawns == 1


def test_occupied_spawn_cell_ends_the_game():
    engine = make_engine()
    fill_column(engine, 2, top=2)
    assert engine.check_game_over()
    engine.tick(0)
    assert engine.game_over
    assert engine.grid[2, 2] == 2


def test_snapshot_is_a_copy():
    engine = make_engine()
    engine.tick(0)
    snapshot = engine.snapshot()
    snapshot.grid[:] = 7
    assert engine.grid.filled_count() == 3
    assert snapshot.visible().shape == (14, 6)


def test_same_seed_same_game():
    a = make_engine(seed=42)
    b = make_engine(seed=42)
    for _ in range(30):
        a.tick(0)
        b.tick(0)
    assert np.array_equal(a.snapshot().grid, b.snapshot().grid)
    assert a.next_gems == b.next_gems


def test_reset_starts_a_fresh_session():
    engine = make_engine()
    fill_column(engine, 0, top=1)
    engine.tick(0)
    assert engine.game_over

    engine.reset()
    assert not engine.game_over
    assert engine.grid.filled_count() == 0
    assert engine.spawns == 0
    assert engine.next_gems is not None


def test_random_play_keeps_invariants():
    engine = make_engine(seed=9)
    rng = random.Random(9)
    for _ in range(3000):
        if engine.game_over:
            engine.reset()

        engine.apply_input(rng.random() < 0.3, rng.random() < 0.3, rng.random() < 0.3)
        filled = engine.grid.filled_count()
        phase = engine.phase
        cleared = engine.tick(rng.randint(0, 5))

        cells = engine.grid.cells
        assert cells.min() >= 0 and cells.max() <= 7
        if phase is Phase.SPAWNING and not engine.game_over:
            assert engine.grid.filled_count() == filled + 3
        else:
            assert engine.grid.filled_count() == filled - cleared
        if engine.piece is not None:
            assert all(not engine.grid.is_empty(x, y) for x, y in engine.piece.cells())
