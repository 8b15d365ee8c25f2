#!/usr/bin/env python3
"""
app.py – desktop shell for the Room 213 renderer

One pygame window showing the composited frame.  Keys (and the web
remote, through events.py) start a preview pass, a recorded pass, or the
narration.  Preview and capture both run the loop on this thread, so the
window keeps pumping events while a pass is running.
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import numpy as np
import pygame

import config
from capture  import CaptureOrchestrator
from display  import draw_progress, present_frame
from errors   import CaptureError
from events   import EventManager
from narration import Narrator
from overlays import FrameComposer
from timing   import SceneClock

IDLE, PREVIEW, RECORD = "idle", "preview", "record"


class Room213App:
    def __init__(self, composer: Optional[FrameComposer] = None,
                 narrator: Optional[Narrator] = None):
        # window ----------------------------------------------------------
        pygame.init()
        pygame.display.set_caption("Room 213")
        self.screen = self._open_window()
        self.clock  = pygame.time.Clock()

        # core state ------------------------------------------------------
        self.composer = composer or FrameComposer()
        self.narrator = narrator or Narrator()
        self.orchestrator = CaptureOrchestrator(self.composer, present=self._present)

        self.running = True
        self.mode    = IDLE
        self.preview_clock: Optional[SceneClock] = None
        self._stop_preview = False

        self.last_time: Optional[float] = None
        self.last_saved: Optional[Path] = None
        self.last_error: Optional[str]  = None

        self._show(self.composer(0.0), 0.0)

    # ── window -------------------------------------------------------------
    def _open_window(self) -> pygame.Surface:
        return pygame.display.set_mode(
            (0, 0) if config.FULLSCREEN else config.WINDOWED_SIZE,
            pygame.FULLSCREEN if config.FULLSCREEN else 0,
        )

    def _show(self, frame: np.ndarray, progress: float) -> None:
        present_frame(self.screen, frame)
        draw_progress(self.screen, progress)
        pygame.display.flip()

    def _present(self, frame: np.ndarray, t: float, progress: float) -> None:
        self.last_time = t
        self._show(frame, progress)
        self._pump()

    # ── status -------------------------------------------------------------
    @property
    def busy(self) -> bool:
        return self.mode != IDLE

    @property
    def progress(self) -> float:
        if self.mode == PREVIEW and self.preview_clock:
            return self.preview_clock.progress
        return self.orchestrator.progress

    # ── input --------------------------------------------------------------
    def _pump(self) -> None:
        for e in pygame.event.get():
            EventManager.handle(e, busy=self.busy)
        while (act := EventManager.poll()):
            self._dispatch(act)

    def _dispatch(self, act: dict) -> None:
        t = act["type"]
        if t == "quit":
            self.running = False
            self._stop_current()
        elif t == "cancel":
            self._stop_current()
        elif t == "narrate":
            self.narrator.speak(self.composer.script.text, config.DURATION)
        elif t == "toggle_fullscreen":
            config.FULLSCREEN ^= True
            self.screen = self._open_window()
        elif t in ("preview", "record"):
            if self.busy:
                print(f"[app] {self.mode} in progress; ignoring '{t}'")
            elif t == "preview":
                self.preview()
            else:
                self.record()

    def _stop_current(self) -> None:
        if self.mode == RECORD:
            self.orchestrator.cancel()
        elif self.mode == PREVIEW:
            self._stop_preview = True

    # ── passes -------------------------------------------------------------
    def preview(self) -> None:
        """Play one pass live, without recording."""
        self.mode = PREVIEW
        self._stop_preview = False
        clock = self.preview_clock = SceneClock()
        clock.start()
        print("[app] preview started")
        try:
            while clock.running and not self._stop_preview:
                t = clock.poll()
                if t is not None:
                    self._present(self.composer(t), t, clock.progress)
                else:
                    self._pump()
                time.sleep(clock.time_until_next())
        finally:
            clock.stop()
            self.mode = IDLE
        print("[app] preview " + ("stopped" if self._stop_preview else "finished"))

    def record(self) -> Optional[Path]:
        """Record one pass and save it; returns the saved path or None."""
        self.mode = RECORD
        self.last_error = None
        try:
            artifact = self.orchestrator.capture()
        except CaptureError as exc:
            self.last_error = str(exc)
            print(f"[app] no video produced: {exc}")
            return None
        finally:
            self.mode = IDLE

        self.last_saved = artifact.save()
        print(f"[app] saved {self.last_saved}")
        return self.last_saved

    # ── main loop ---------------------------------------------------------
    def run(self) -> None:
        print("[app] space/p preview · r record · n narrate · esc cancel · q quit")
        while self.running:
            self._pump()
            self.clock.tick(config.FPS)

        self.narrator.stop()
        pygame.quit()


if __name__ == "__main__":
    Room213App().run()
