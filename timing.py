# =========  timing.py  =========
"""
Scene-time helpers.

SceneClock maps a free-running monotonic wall clock onto scene time in
[0, DURATION].  It never sleeps on its own: the caller asks `poll()` whether
a frame is due and `time_until_next()` how long it may yield before asking
again, so the loop that owns the clock also owns cancellation.
"""
from __future__ import annotations

import math
import time
from typing import Callable, Optional

import config
from errors import InvalidTimeInput


def check_time(t: float, duration: float | None = None) -> float:
    """Return *t* as a float, or raise InvalidTimeInput if it is off the timeline."""
    duration = config.DURATION if duration is None else duration
    if isinstance(t, bool) or not isinstance(t, (int, float)) or not math.isfinite(t):
        raise InvalidTimeInput(f"scene time must be a finite number, got {t!r}")
    if t < 0.0 or t > duration:
        raise InvalidTimeInput(f"scene time {t:.3f}s outside [0, {duration:g}]")
    return float(t)


def clamp_time(t: float, duration: float | None = None) -> float:
    duration = config.DURATION if duration is None else duration
    return min(max(float(t), 0.0), duration)


class SceneClock:
    """
    Fixed-rate, best-effort timeline.

    A frame is accepted when at least `interval - tolerance` wall seconds
    have passed since the previous accepted frame.  The frame at exactly
    `duration` is always accepted once, after which the clock is complete.
    Accepted scene times are strictly increasing.
    """

    def __init__(
        self,
        fps: int | None = None,
        duration: float | None = None,
        tolerance: float | None = None,
        now: Callable[[], float] = time.perf_counter,
    ):
        self.fps       = fps or config.FPS
        self.duration  = config.DURATION if duration is None else duration
        self.tolerance = config.FRAME_TOLERANCE if tolerance is None else tolerance
        self.interval  = 1.0 / self.fps
        self._now      = now

        self._start: Optional[float]     = None
        self._last_tick: Optional[float] = None   # wall time of last accepted frame
        self.last_time: Optional[float]  = None   # scene time of last accepted frame
        self.frames   = 0
        self.complete = False
        self.stopped  = False

    # ── lifecycle ──────────────────────────────────────────────────────────
    def start(self) -> None:
        self._start     = self._now()
        self._last_tick = None
        self.last_time  = None
        self.frames     = 0
        self.complete   = False
        self.stopped    = False

    def stop(self) -> None:
        self.stopped = True

    @property
    def running(self) -> bool:
        return self._start is not None and not (self.complete or self.stopped)

    @property
    def progress(self) -> float:
        if self.last_time is None:
            return 0.0
        return min(1.0, self.last_time / self.duration)

    def elapsed(self) -> float:
        """Wall seconds since start()."""
        if self._start is None:
            return 0.0
        return self._now() - self._start

    # ── ticking ────────────────────────────────────────────────────────────
    def poll(self) -> Optional[float]:
        """Return the scene time of a due frame, or None if nothing is due."""
        if not self.running:
            return None

        now   = self._now()
        t     = clamp_time(now - self._start, self.duration)
        final = t >= self.duration

        if (not final and self._last_tick is not None
                and now - self._last_tick < self.interval - self.tolerance):
            return None
        if self.last_time is not None and t <= self.last_time:
            return None

        self._last_tick = now
        self.last_time  = t
        self.frames    += 1
        if final:
            self.complete = True
        return t

    def time_until_next(self) -> float:
        """Seconds the caller may yield before the next frame is due."""
        if not self.running or self._last_tick is None:
            return 0.0
        due = min(self._last_tick + self.interval,
                  self._start + self.duration)
        return max(0.0, due - self._now())
