"""
Host-side timing: tick cadence, input debouncing and score keeping.

These objects hold the frame-time accumulators of the play loop. They are
fed elapsed-time deltas (or read an injectable clock) so the engine itself
stays free of any wall-clock dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import monotonic
from typing import Any, Callable, Dict

from columns.game.engine import Phase


class TickScheduler:
    """Decides when the host should call GridEngine.tick().

    The interval shrinks with level (base_interval * speedup ** level).
    While loose gems settle, and during a soft drop, ticks come every
    fast_interval seconds instead.

    Attributes:
        base_interval: Seconds between ticks at level 0.
        speedup: Per-level multiplier of the interval (< 1 speeds up).
        fast_interval: Seconds between ticks while settling or soft dropping.
        interval: Interval currently in effect.
        elapsed: Time accumulated towards the next tick.
    """

    def __init__(
        self,
        base_interval: float = 1.0,
        speedup: float = 0.95,
        fast_interval: float = 0.05,
    ) -> None:
        self.base_interval = base_interval
        self.speedup = speedup
        self.fast_interval = fast_interval
        self.interval = base_interval
        self.elapsed = 0.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> TickScheduler:
        return cls(
            base_interval=config.get("base_interval", 1.0),
            speedup=config.get("speedup", 0.95),
            fast_interval=config.get("fast_interval", 0.05),
        )

    def interval_for(self, level: int) -> float:
        """Return the drop interval for a level."""
        return self.base_interval * self.speedup ** level

    def consume(self, dt: float) -> bool:
        """Accumulate dt and report whether a tick is due.

        At most one tick fires per call; the remainder carries over.
        """
        self.elapsed += dt
        if self.elapsed >= self.interval:
            self.elapsed -= self.interval
            return True
        return False

    def soft_drop(self) -> None:
        self.interval = self.fast_interval

    def retime(self, previous: Phase, current: Phase, level: int) -> None:
        """Pick the interval for the next tick from the phase transition.

        Args:
            previous: Engine phase before the tick.
            current: Engine phase after the tick.
            level: Current level.
        """
        if current is Phase.RESOLVING:
            self.interval = self.fast_interval
        elif previous is Phase.FALLING and current is Phase.FALLING:
            # Keep soft drop (or the level interval) until the triplet lands.
            return
        else:
            self.interval = self.interval_for(level)

    def reset(self) -> None:
        self.interval = self.base_interval
        self.elapsed = 0.0


@dataclass(slots=True)
class InputDebouncer:
    """Accepts each intent at most once per debounce_time seconds.

    Intents are tracked independently, so holding left does not delay a
    rotate.
    """

    debounce_time: float = 0.15
    clock: Callable[[], float] | None = field(default=None, repr=False)

    _clock: Callable[[], float] = field(init=False, repr=False)
    _last_accepted: Dict[str, float] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._clock = self.clock or monotonic
        self._last_accepted = {}
        self.debounce_time = max(0.0, float(self.debounce_time))

    def allow(self, intent: str, pressed: bool) -> bool:
        """Return True if a pressed intent should be forwarded now."""
        if not pressed:
            return False
        now = self._clock()
        last = self._last_accepted.get(intent)
        if last is not None and (now - last) < self.debounce_time:
            return False
        self._last_accepted[intent] = now
        return True

    def reset(self) -> None:
        self._last_accepted.clear()


@dataclass
class ScoreKeeper:
    """Running total of cleared cells and the level derived from it."""

    cells_per_level: int = 10
    cleared_cells: int = 0

    @property
    def level(self) -> int:
        return self.cleared_cells // self.cells_per_level

    def add(self, cleared: int) -> int:
        """Add a tick's cleared cells and return the new level."""
        self.cleared_cells += cleared
        return self.level

    def reset(self) -> None:
        self.cleared_cells = 0
