"""
sink.py

Recording sink on PyAV.

open_sink() negotiates the encoder once, before any frame exists (VP9,
falling back to VP8, in WebM).  Frames are pushed from the render loop
into a bounded queue and encoded on a writer thread, so push() returns
quickly and close() has to drain the queue before the bytes are final.

Frames are stamped with their scene time, not their arrival order, so a
pass rendered below the nominal rate still spans the full scene.
"""

from __future__ import annotations

import io
import queue
import threading
import time
from fractions import Fraction
from typing import Optional

import av
import av.error
import numpy as np

import config
from errors import FinalizeTimeout, SinkOpenFailure, SinkWriteFailure, UnsupportedEncoding

_STOP = object()


def codec_available(name: str) -> bool:
    try:
        av.codec.Codec(name, "w")
        return True
    except (ValueError, av.error.FFmpegError):
        return False


def choose_codec(preference=None) -> tuple[str, str]:
    """Return the first (encoder, tag) pair this FFmpeg build can encode."""
    preference = config.CODEC_PREFERENCE if preference is None else preference
    for encoder, tag in preference:
        if codec_available(encoder):
            return encoder, tag
    raise UnsupportedEncoding(
        "no usable encoder among " + ", ".join(e for e, _ in preference))


class VideoSink:
    """Threaded PyAV encoder writing a WebM stream into memory."""

    def __init__(self, fps: int, width: int, height: int,
                 encoder: str, tag: str,
                 bit_rate: int | None = None,
                 queue_frames: int | None = None):
        self.fps, self.width, self.height = fps, width, height
        self.encoder = encoder
        self.mime    = f"video/{config.CONTAINER_FORMAT};codecs={tag}"
        self.frames  = 0
        self._last_pts = -1

        self._buf = io.BytesIO()
        try:
            self._container = av.open(self._buf, mode="w", format=config.CONTAINER_FORMAT)
            self._stream = self._container.add_stream(encoder, rate=fps)
            self._stream.width    = width
            self._stream.height   = height
            self._stream.pix_fmt  = "yuv420p"
            self._stream.bit_rate = bit_rate or config.VIDEO_BITRATE
            self._stream.options  = dict(getattr(config, "ENCODER_OPTIONS", {}))
        except (ValueError, av.error.FFmpegError) as exc:
            raise SinkOpenFailure(f"cannot open {encoder} sink: {exc}") from exc

        self._q: "queue.Queue[object]" = queue.Queue(maxsize=queue_frames or config.SINK_QUEUE_FRAMES)
        self._error: Optional[BaseException] = None
        self._aborted = False
        self._closed  = False
        self._thread  = threading.Thread(target=self._run, name="video-sink", daemon=True)
        self._thread.start()

    # ── producer side ──────────────────────────────────────────────────────
    def push(self, frame: np.ndarray, t: float | None = None) -> bool:
        """
        Queue *frame* at scene time *t* (seconds).  Without *t* frames are
        stamped back to back.  Returns False when the frame lands on an
        already used timestamp and is dropped.
        """
        if self._closed:
            raise SinkWriteFailure("push() after close()")
        if frame.shape != (self.height, self.width, 3):
            raise SinkWriteFailure(
                f"frame shape {frame.shape} != {(self.height, self.width, 3)}")
        pts = self._last_pts + 1 if t is None else int(round(t * self.fps))
        if pts <= self._last_pts:
            return False
        self._last_pts = pts
        while True:
            self._raise_if_failed()
            try:
                self._q.put((frame, pts), timeout=0.25)
                return True
            except queue.Full:
                continue

    def close(self, timeout: float | None = None) -> bytes:
        """Drain the queue, flush the encoder and return the finished file."""
        timeout = config.FINALIZE_TIMEOUT_SEC if timeout is None else timeout
        self._closed = True
        deadline = time.monotonic() + timeout
        self._put_stop(deadline)
        self._thread.join(max(0.0, deadline - time.monotonic()))
        if self._thread.is_alive():
            raise FinalizeTimeout(f"encoder still busy after {timeout:g}s")
        self._raise_if_failed()
        return self._buf.getvalue()

    def abort(self) -> None:
        """Stop encoding and throw away whatever was written."""
        self._aborted = True
        self._closed  = True
        while True:
            try:
                self._q.get_nowait()
            except queue.Empty:
                break
        self._put_stop(time.monotonic() + 1.0)
        self._thread.join(1.0)
        self._buf = io.BytesIO()

    # ── writer thread ──────────────────────────────────────────────────────
    def _run(self) -> None:
        try:
            while True:
                item = self._q.get()
                if item is _STOP:
                    break
                if self._aborted:
                    continue
                frame, pts = item
                vf = av.VideoFrame.from_ndarray(frame, format="rgb24")
                vf.pts = pts
                vf.time_base = Fraction(1, self.fps)
                for packet in self._stream.encode(vf):
                    self._container.mux(packet)
                self.frames += 1
            if not self._aborted:
                for packet in self._stream.encode(None):
                    self._container.mux(packet)
        except Exception as exc:  # noqa: BLE001 – handed to the producer
            self._error = exc
        finally:
            try:
                self._container.close()
            except Exception as exc:  # noqa: BLE001
                if self._error is None and not self._aborted:
                    self._error = exc

    def _put_stop(self, deadline: float) -> None:
        while self._thread.is_alive() and time.monotonic() < deadline:
            try:
                self._q.put(_STOP, timeout=0.1)
                return
            except queue.Full:
                continue

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise SinkWriteFailure(f"encoder failed: {self._error}") from self._error


def open_sink(fps: int, encoding=None,
              width: int | None = None, height: int | None = None) -> VideoSink:
    """
    Pick an encoder from *encoding* (defaults to config.CODEC_PREFERENCE)
    and open a sink for frames of width x height.
    """
    encoder, tag = choose_codec(encoding)
    sink = VideoSink(fps, width or config.WIDTH, height or config.HEIGHT, encoder, tag)
    print(f"[sink] recording {sink.width}x{sink.height}@{fps} with {encoder} ({sink.mime})")
    return sink
