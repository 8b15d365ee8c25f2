"""
capture.py

Capture orchestrator: one real-time pass of the scene, recorded once.

    idle ──begin()──▶ recording ──clock complete──▶ finalizing ──▶ done
                          │                             │
                          └────────── failed ◀──────────┘

The loop runs on the caller's thread.  Each pass through it asks the
SceneClock for a due frame, composes it, pushes it to the sink, presents
it, then yields via `sleep()`; cancellation is checked right after the
yield.  Only one session can be recording or finalizing at a time.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import numpy as np

import config
import sink as sink_mod
from errors import (CaptureCancelled, CaptureError, ConcurrentSessionRejected,
                    FinalizeTimeout, SinkOpenFailure, SinkWriteFailure)
from timing import SceneClock

IDLE, RECORDING, FINALIZING, DONE, FAILED = "idle", "recording", "finalizing", "done", "failed"

_NEXT = {
    IDLE:       {RECORDING},
    RECORDING:  {FINALIZING, FAILED},
    FINALIZING: {DONE, FAILED},
    DONE:       set(),
    FAILED:     set(),
}

Present = Callable[[np.ndarray, float, float], None]


# ── session / artifact ─────────────────────────────────────────────────────
@dataclass
class CaptureSession:
    status: str = IDLE
    started_at: Optional[float] = None
    frames: int = 0
    mime: str = ""
    error: Optional[BaseException] = None
    history: list[str] = field(default_factory=lambda: [IDLE])

    @property
    def active(self) -> bool:
        return self.status in (RECORDING, FINALIZING)

    def advance(self, status: str) -> None:
        if status not in _NEXT[self.status]:
            raise RuntimeError(f"capture session cannot go {self.status} → {status}")
        self.status = status
        self.history.append(status)


class Artifact:
    """Finished recording.  release() drops the bytes; a released artifact is unusable."""

    def __init__(self, data: bytes, mime: str, frames: int = 0,
                 filename: str | None = None):
        self._data    = data
        self.mime     = mime
        self.frames   = frames
        self.filename = filename or config.OUTPUT_FILENAME

    @property
    def valid(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise RuntimeError(f"artifact {self.filename} has been released")
        return self._data

    def snapshot(self) -> Optional[bytes]:
        """The bytes, or None once released; one read, safe against a concurrent release()."""
        return self._data

    @property
    def size(self) -> int:
        return len(self._data) if self._data is not None else 0

    def release(self) -> None:
        self._data = None

    def save(self, directory: str | os.PathLike | None = None) -> Path:
        out_dir = Path(directory or config.OUTPUT_DIR)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.filename
        path.write_bytes(self.data)
        return path


# ── orchestrator ───────────────────────────────────────────────────────────
class CaptureOrchestrator:
    def __init__(
        self,
        compose: Callable[[float], np.ndarray],
        open_sink: Callable[..., object] = sink_mod.open_sink,
        present: Optional[Present] = None,
        fps: int | None = None,
        duration: float | None = None,
        grace: float | None = None,
        finalize_timeout: float | None = None,
        encoding=None,
        now: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.compose   = compose
        self.present   = present
        self.fps       = fps or config.FPS
        self.duration  = config.DURATION if duration is None else duration
        self.grace     = config.CAPTURE_GRACE_SEC if grace is None else grace
        self.finalize_timeout = (config.FINALIZE_TIMEOUT_SEC
                                 if finalize_timeout is None else finalize_timeout)
        self.encoding  = encoding
        self._open_sink = open_sink
        self._now      = now
        self._sleep    = sleep

        self.session: Optional[CaptureSession] = None
        self.artifact: Optional[Artifact]      = None
        self.clock: Optional[SceneClock]       = None
        self._sink     = None
        self._progress = 0.0
        self._cancel   = threading.Event()
        self._lock     = threading.Lock()

    # ── read-only views ────────────────────────────────────────────────────
    @property
    def status(self) -> str:
        return self.session.status if self.session else IDLE

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def busy(self) -> bool:
        return self.session is not None and self.session.active

    # ── control ────────────────────────────────────────────────────────────
    def begin(self) -> CaptureSession:
        """idle → recording: open the sink, then start the clock at t = 0."""
        with self._lock:
            if self.busy:
                raise ConcurrentSessionRejected(
                    f"a capture is already {self.session.status}; try again when it ends")

            self._release_artifact()
            try:
                sink = self._open_sink(self.fps, self.encoding)
            except CaptureError:
                raise
            except Exception as exc:  # noqa: BLE001
                raise SinkOpenFailure(f"could not open recording sink: {exc}") from exc

            session = CaptureSession()
            session.advance(RECORDING)
            session.started_at = time.time()
            session.mime = getattr(sink, "mime", "")

            self._sink     = sink
            self._progress = 0.0
            self._cancel.clear()
            self.session = session
            self.clock   = SceneClock(self.fps, self.duration, now=self._now)
            self.clock.start()

        print(f"[capture] recording {self.duration:g}s @ {self.fps} fps ({session.mime or 'sink'})")
        return session

    def cancel(self) -> None:
        """Stop the running session at its next yield point."""
        self._cancel.set()

    def capture(self) -> Artifact:
        """begin() + run(): one full pass, returns the finished artifact."""
        self.begin()
        return self.run()

    def run(self) -> Artifact:
        session = self.session
        if session is None or session.status != RECORDING:
            raise RuntimeError("run() needs a session started with begin()")

        try:
            self._record(session)

            session.advance(FINALIZING)
            print(f"[capture] pass complete ({session.frames} frames); "
                  f"flushing for {self.grace:g}s")
            self._sleep(self.grace)
            data = self._close_sink()
        except BaseException as exc:
            self._fail(session, exc)
            raise

        artifact = Artifact(data, session.mime, session.frames)
        self._release_artifact()
        self.artifact = artifact
        self._sink = None
        session.advance(DONE)
        print(f"[capture] done: {artifact.filename} {artifact.size / 1e6:.1f} MB, "
              f"{artifact.frames} frames")
        return artifact

    # ── internals ──────────────────────────────────────────────────────────
    def _record(self, session: CaptureSession) -> None:
        clock = self.clock
        window = self.duration + self.grace + self.finalize_timeout

        while True:
            if self._cancel.is_set():
                raise CaptureCancelled(
                    f"capture cancelled at t={clock.last_time or 0.0:.2f}s")

            t = clock.poll()
            if t is not None:
                frame = self.compose(t)
                self._push(frame, t)
                session.frames += 1
                self._progress = max(self._progress, clock.progress)
                self._show(frame, t)

            if clock.complete:
                return
            if clock.elapsed() > window:
                raise FinalizeTimeout(f"capture overran its {window:g}s window")
            self._sleep(clock.time_until_next())

    def _push(self, frame: np.ndarray, t: float) -> None:
        try:
            self._sink.push(frame, t)
        except CaptureError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise SinkWriteFailure(f"sink rejected frame: {exc}") from exc

    def _close_sink(self) -> bytes:
        try:
            data = self._sink.close(timeout=self.finalize_timeout)
        except CaptureError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise SinkWriteFailure(f"sink failed to finalize: {exc}") from exc
        if not data:
            raise SinkWriteFailure("sink returned an empty recording")
        return data

    def _show(self, frame: np.ndarray, t: float) -> None:
        if self.present is None:
            return
        try:
            self.present(frame, t, self._progress)
        except Exception as exc:  # noqa: BLE001 – display must not stop the recording
            print(f"[capture] presentation failed at t={t:.2f}s: {exc}")

    def _fail(self, session: CaptureSession, exc: BaseException) -> None:
        if self.clock:
            self.clock.stop()
        if self._sink is not None:
            try:
                self._sink.abort()
            except Exception as abort_exc:  # noqa: BLE001
                print(f"[capture] sink abort failed: {abort_exc}")
            self._sink = None
        session.error = exc
        session.advance(FAILED)
        print(f"[capture] failed ({type(exc).__name__}: {exc}); no artifact produced")

    def _release_artifact(self) -> None:
        if self.artifact is not None:
            self.artifact.release()
            self.artifact = None
