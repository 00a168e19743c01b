"""
satrack.clock — Virtual Simulation Clock
==========================================

Advances a virtual UTC timestamp by ``wall_delta_ms × rate_multiplier``
each tick while running, and holds it while paused.  Virtual time never
moves backwards except through :meth:`SimulationClock.reset`.
"""
import enum
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .utils import ensure_utc


class ClockState(enum.Enum):
    RUNNING = "running"
    PAUSED = "paused"


def _wall_now() -> datetime:
    return datetime.now(timezone.utc)


class SimulationClock:
    """
    Parameters
    ----------
    start : datetime — initial virtual time (default: current wall time)
    rate_multiplier : int — simulated seconds per wall second
    min_rate, max_rate : int — clamp bounds for the multiplier
    now : callable — wall-clock source, replaceable in tests
    """

    def __init__(self, start: Optional[datetime] = None,
                 rate_multiplier: int = 60,
                 min_rate: int = 1, max_rate: int = 3600,
                 now: Callable[[], datetime] = _wall_now):
        if not 1 <= min_rate <= max_rate:
            raise ValueError("need 1 <= min_rate <= max_rate")
        self.min_rate = min_rate
        self.max_rate = max_rate
        self._now = now
        self._time = ensure_utc(start) if start is not None else ensure_utc(now())
        self._rate = min_rate
        self._rate = self._clamp(rate_multiplier)
        self.state = ClockState.RUNNING

    @property
    def time(self) -> datetime:
        return self._time

    @property
    def rate_multiplier(self) -> int:
        return self._rate

    @rate_multiplier.setter
    def rate_multiplier(self, value):
        self._rate = self._clamp(value)

    def _clamp(self, value) -> int:
        value = float(value)
        if math.isnan(value):
            # no usable request; keep the current rate
            return self._rate
        return int(round(min(max(value, self.min_rate), self.max_rate)))

    @property
    def paused(self) -> bool:
        return self.state is ClockState.PAUSED

    @paused.setter
    def paused(self, value: bool):
        self.state = ClockState.PAUSED if value else ClockState.RUNNING

    def toggle(self) -> ClockState:
        self.paused = not self.paused
        return self.state

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def advance(self, wall_delta_ms: float) -> datetime:
        """Advance by one tick's wall-clock delta; returns the new virtual time.

        Negative deltas count as zero.
        """
        if self.state is ClockState.RUNNING and wall_delta_ms > 0:
            self._time += timedelta(milliseconds=wall_delta_ms * self._rate)
        return self._time

    def reset(self, to: Optional[datetime] = None) -> datetime:
        """Jump virtual time to ``to`` or, by default, the current wall time."""
        self._time = ensure_utc(to) if to is not None else ensure_utc(self._now())
        return self._time

    def __repr__(self):
        return (f"SimulationClock(time={self._time.isoformat()}, "
                f"rate={self._rate}, state={self.state.value})")
