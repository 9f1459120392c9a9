import pytest

from columns.game.engine import Phase
from columns.scheduler import InputDebouncer, ScoreKeeper, TickScheduler


class _FakeClock:
    def __init__(self) -> None:
        self.value = 0.0

    def advance(self, amount: float) -> None:
        self.value += amount

    def __call__(self) -> float:
        return self.value


def test_scheduler_fires_once_interval_has_elapsed():
    scheduler = TickScheduler(base_interval=1.0)
    assert not scheduler.consume(0.5)
    assert scheduler.consume(0.6)
    assert scheduler.elapsed == pytest.approx(0.1)


def test_scheduler_fires_at_most_once_per_call():
    scheduler = TickScheduler(base_interval=1.0)
    assert scheduler.consume(2.5)
    assert scheduler.elapsed == pytest.approx(1.5)
    assert scheduler.consume(0.0)
    assert not scheduler.consume(0.0)


def test_interval_shrinks_with_level():
    scheduler = TickScheduler(base_interval=1.0, speedup=0.95)
    assert scheduler.interval_for(0) == pytest.approx(1.0)
    assert scheduler.interval_for(3) == pytest.approx(0.95 ** 3)


def test_retime_follows_phase_transitions():
    scheduler = TickScheduler(base_interval=1.0, speedup=0.5, fast_interval=0.05)

    scheduler.retime(Phase.MATCHING, Phase.RESOLVING, level=0)
    assert scheduler.interval == pytest.approx(0.05)

    scheduler.retime(Phase.SPAWNING, Phase.FALLING, level=2)
    assert scheduler.interval == pytest.approx(0.25)

    scheduler.soft_drop()
    scheduler.retime(Phase.FALLING, Phase.FALLING, level=2)
    assert scheduler.interval == pytest.approx(0.05)

    scheduler.retime(Phase.FALLING, Phase.SPAWNING, level=2)
    assert scheduler.interval == pytest.approx(0.25)


def test_scheduler_reset():
    scheduler = TickScheduler(base_interval=2.0)
    scheduler.soft_drop()
    scheduler.consume(0.01)
    scheduler.reset()
    assert scheduler.interval == 2.0
    assert scheduler.elapsed == 0.0


def test_debouncer_blocks_repeats_within_debounce_time():
    clock = _FakeClock()
    debouncer = InputDebouncer(debounce_time=0.15, clock=clock)

    assert debouncer.allow("left", True)
    clock.advance(0.05)
    assert not debouncer.allow("left", True)
    clock.advance(0.2)
    assert debouncer.allow("left", True)


def test_debouncer_tracks_intents_independently():
    clock = _FakeClock()
    debouncer = InputDebouncer(debounce_time=0.15, clock=clock)

    assert debouncer.allow("left", True)
    assert debouncer.allow("rotate", True)
    assert not debouncer.allow("right", False)
    clock.advance(0.01)
    assert debouncer.allow("right", True)


def test_debouncer_reset_forgets_presses():
    clock = _FakeClock()
    debouncer = InputDebouncer(clock=clock)
    assert debouncer.allow("left", True)
    debouncer.reset()
    assert debouncer.allow("left", True)


def test_score_keeper_levels_every_ten_cells():
    score = ScoreKeeper()
    assert score.add(9) == 0
    assert score.add(3) == 1
    assert score.cleared_cells == 12
    score.reset()
    assert score.level == 0
