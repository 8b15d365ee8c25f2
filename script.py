"""
script.py

The narration script: an ordered, immutable list of caption lines.  The
same lines feed the caption band and the spoken narration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from errors import InvalidScript

ROOM_213 = (
    "I shouldn't have taken room two-thirteen.",
    "The hallway smells like bleach and something older.",
    "The carpet sighs under my shoes as I reach the door.",
    "Room two-thirteen blinks at me, brass numbers dull, as if tired of being noticed.",
    "The key slides, the lock resists, then gives, like a held breath finally exhaled.",
    "Inside is colder than the corridor. The air tastes metallic.",
    "There's a hum I can't place, low and steady, between the walls.",
    "The bathroom mirror carries a thin film, fingerprints from a hand not quite human.",
    "I whisper hello, to no one. Something whispers back, but it's my voice, too slow.",
    "The lights flicker. The hum turns into a throat clearing in the ceiling.",
    "I step toward the bed. Shadows move where my feet don't.",
    "The numbers two and thirteen are on the alarm clock, even though it's midnight.",
    "The door closes by itself, a soft click that sounds final.",
    "The hum stops. The room listens.",
    "In the silence I hear someone breathing, inside my ear, inside my head.",
    "I turn. In the window, my reflection is a half step late.",
    "It smiles before I do.",
    "I don't remember teaching it that.",
    "Something sits on the mattress. The springs don't move.",
    "I reach for the lamp. My hand goes through the switch like water.",
    "A whisper threads the dark: welcome back.",
    "I run for the door. The handle is warm, like a mouth.",
    "The brass numbers outside are reversed: three-one-two.",
    "There's no hallway. Only another door. Mine.",
    "I knock from inside. I hear knuckles on the other side.",
    "Room two-thirteen inhales.",
    "And the lights finally go out.",
)


@dataclass(frozen=True)
class NarrationScript:
    lines: tuple[str, ...]

    def __init__(self, lines: Iterable[str]):
        lines = tuple(lines)
        if not lines:
            raise InvalidScript("narration script needs at least one line")
        for i, line in enumerate(lines):
            if not isinstance(line, str) or not line.strip():
                raise InvalidScript(f"line {i} is empty or not text: {line!r}")
        object.__setattr__(self, "lines", lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, i: int) -> str:
        return self.lines[i]

    @property
    def text(self) -> str:
        """All lines joined with single spaces, as spoken."""
        return " ".join(self.lines)

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def default_script() -> NarrationScript:
    return NarrationScript(ROOM_213)
