"""Timestamps anchored on a monotonic clock.

Wall-clock time is sampled once as a calibration point; later timestamps add
monotonic elapsed time to it, so the precision of elapsed intervals survives
wall-clock jumps. The calibration is refreshed periodically to bound drift.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True, order=True)
class Timestamp:
    """An absolute point in time as ``{seconds, nanos}``."""

    seconds: int
    nanos: int

    @classmethod
    def from_nanos(cls, total_nanos: int) -> "Timestamp":
        seconds, nanos = divmod(int(total_nanos), NANOS_PER_SECOND)
        return cls(seconds=seconds, nanos=nanos)

    def to_nanos(self) -> int:
        return self.seconds * NANOS_PER_SECOND + self.nanos

    def to_seconds(self) -> float:
        return self.seconds + self.nanos / NANOS_PER_SECOND


class Clock:
    """Hybrid monotonic and wall-clock time source.

    Args:
        recalibration_interval: Seconds of monotonic time after which the
            wall-clock offset is sampled again. ``0`` keeps the first sample
            for the lifetime of the clock.
        wall_ns: Wall-clock source in nanoseconds since the epoch.
        monotonic_ns: Monotonic source in nanoseconds.
    """

    def __init__(
        self,
        recalibration_interval: float = 60.0,
        wall_ns: Callable[[], int] = time.time_ns,
        monotonic_ns: Callable[[], int] = time.monotonic_ns,
    ):
        self._wall_ns = wall_ns
        self._monotonic_ns = monotonic_ns
        self._interval_ns = int(recalibration_interval * NANOS_PER_SECOND)
        self._lock = threading.Lock()
        self._calibrate()

    def _calibrate(self) -> None:
        self._base_monotonic = self._monotonic_ns()
        self._base_wall = self._wall_ns()

    def recalibrate(self) -> None:
        """Take a fresh wall-clock sample."""
        with self._lock:
            self._calibrate()

    def now(self) -> Timestamp:
        with self._lock:
            elapsed = self._monotonic_ns() - self._base_monotonic
            if self._interval_ns > 0 and elapsed >= self._interval_ns:
                self._calibrate()
                elapsed = 0
            return Timestamp.from_nanos(self._base_wall + elapsed)


class FixedClock(Clock):
    """Clock that always reports the same instant unless advanced."""

    def __init__(self, timestamp: Optional[Timestamp] = None):
        self._current = timestamp or Timestamp(seconds=1_000, nanos=0)
        self._lock = threading.Lock()

    def recalibrate(self) -> None:
        pass

    def now(self) -> Timestamp:
        with self._lock:
            return self._current

    def set(self, timestamp: Timestamp) -> None:
        with self._lock:
            self._current = timestamp

    def advance(self, seconds: float = 0, nanos: int = 0) -> Timestamp:
        with self._lock:
            total = self._current.to_nanos() + int(seconds * NANOS_PER_SECOND) + nanos
            self._current = Timestamp.from_nanos(total)
            return self._current


_default_clock: Optional[Clock] = None


def get_clock() -> Clock:
    """Get the process clock, creating it from settings on first use."""
    global _default_clock
    if _default_clock is None:
        from statscore.core.config import get_settings

        _default_clock = Clock(get_settings().CLOCK_RECALIBRATION_INTERVAL_SECONDS)
    return _default_clock


def set_clock(clock: Optional[Clock]) -> None:
    """Replace the process clock. ``None`` restores lazy default creation."""
    global _default_clock
    _default_clock = clock
