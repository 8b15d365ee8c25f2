import numpy as np
import pytest

import config
from events import EventManager


class FakeTime:
    """Manual clock: sleep() advances now() instead of blocking."""

    def __init__(self, start: float = 100.0):
        self.t = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.t

    def sleep(self, dt: float) -> None:
        self.sleeps.append(dt)
        self.t += max(dt, 1e-4)


class StubSink:
    mime = "video/webm;codecs=vp9"

    def __init__(self, fail_after=None, data=b"\x1a\x45\xdf\xa3webm", close_error=None):
        self.frames: list[np.ndarray] = []
        self.times: list[float] = []
        self.fail_after  = fail_after
        self.data        = data
        self.close_error = close_error
        self.closed  = False
        self.aborted = False

    def push(self, frame, t=None):
        if self.fail_after is not None and len(self.frames) >= self.fail_after:
            raise OSError("No space left on device")
        self.frames.append(frame)
        self.times.append(t)
        return True

    def close(self, timeout=None):
        self.closed = True
        if self.close_error:
            raise self.close_error
        return self.data

    def abort(self):
        self.aborted = True


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def no_strobe(monkeypatch):
    """Silence the pseudo-random strobe so pixel checks are stable."""
    monkeypatch.setattr(config, "STROBE_LEVEL", 0.0)


@pytest.fixture(autouse=True)
def _empty_event_queue():
    EventManager.clear()
    yield
    EventManager.clear()
