"""
errors.py

Failure kinds raised by the renderer, the caption layer and the capture
pipeline.  Capture errors are fatal to the session they occur in, apart
from ConcurrentSessionRejected which leaves the running session alone.
"""

from __future__ import annotations


class InvalidTimeInput(ValueError):
    """Scene time outside [0, DURATION] or not a finite number."""


class InvalidScript(ValueError):
    """Narration script is empty or contains a blank / non-text line."""


class CaptureError(RuntimeError):
    """Base class for everything the capture pipeline can raise."""


class UnsupportedEncoding(CaptureError):
    """None of the preferred encoders is available."""


class SinkOpenFailure(CaptureError):
    """The recording sink could not be opened; no session was created."""


class SinkWriteFailure(CaptureError):
    """The sink failed while frames were being recorded."""


class FinalizeTimeout(CaptureError):
    """The sink did not hand back an artifact within the allowed margin."""


class CaptureCancelled(CaptureError):
    """The session was stopped before the pass completed."""


class ConcurrentSessionRejected(CaptureError):
    """A capture was requested while another one is still running."""
