#!/usr/bin/env python3
"""
events.py  – one queue for every way of driving the app

Keyboard presses (via pygame) and web-remote commands both become small
action dicts, {"type": <command>}, that the app drains between frames.

Actions: preview, record, narrate, cancel, quit, toggle_fullscreen.
"""

from __future__ import annotations
import queue
from pygame.locals import *

Action = dict

COMMANDS = ("preview", "record", "narrate", "cancel", "quit")

KEY_ACTIONS = {
    K_SPACE: "preview",
    K_p:     "preview",
    K_r:     "record",
    K_n:     "narrate",
    K_q:     "quit",
    K_f:     "toggle_fullscreen",
}


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # shared with the web thread

    @classmethod
    def handle(cls, event, busy: bool = False) -> None:
        """Queue the action for one pygame event, if it maps to any."""
        act = cls._translate_pygame(event, busy)
        if act:
            cls._fifo.put(act)

    @classmethod
    def post(cls, action: Action) -> None:
        """Thread-safe: EventManager.post({"type": "record"})"""
        cls._fifo.put(action)

    @classmethod
    def poll(cls) -> Action | None:
        try:
            return cls._fifo.get_nowait()
        except queue.Empty:
            return None

    @classmethod
    def clear(cls) -> None:
        while cls.poll() is not None:
            pass

    @staticmethod
    def _translate_pygame(event, busy: bool) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}
        if event.type != KEYDOWN:
            return None

        if event.key == K_ESCAPE:
            # Esc stops a running pass first; pressed while idle it quits
            return {"type": "cancel" if busy else "quit"}
        name = KEY_ACTIONS.get(event.key)
        return {"type": name} if name else None
