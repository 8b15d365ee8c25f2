"""
narration.py

Spoken narration through the `espeak` command-line synthesiser.

The narrator only starts and stops an independent playback process.
Nothing in the renderer or the capture loop waits on it or reads from it;
the picture is timed by scene time alone.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

import config


@dataclass(frozen=True)
class Voice:
    name: str
    language: str

    def __str__(self) -> str:
        return f"{self.name} ({self.language})"


def parse_voices(listing: str) -> list[Voice]:
    """
    Parse `espeak --voices` output:

        Pty Language       Age/Gender VoiceName          File          Other Languages
         5  en-gb           --/M      English_(Great_Britain) gmw/en
    """
    voices: list[Voice] = []
    for line in listing.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 4:
            continue
        voices.append(Voice(name=parts[3], language=parts[1]))
    return voices


def choose_voice(voices: Sequence[Voice],
                 preferred: Sequence[str] | None = None) -> Optional[Voice]:
    """First preferred name/language, else the first English voice, else the first voice."""
    preferred = config.PREFERRED_VOICES if preferred is None else preferred
    for want in preferred:
        want = want.lower()
        for v in voices:
            if want in (v.name.lower(), v.language.lower()):
                return v
    english = next((v for v in voices if v.language.lower().startswith("en")), None)
    if english:
        return english
    return voices[0] if voices else None


def speech_rate(word_count: int, target_seconds: float | None = None) -> float:
    """Rate multiplier that stretches *word_count* words over *target_seconds*."""
    target_seconds = target_seconds or config.DURATION
    lo, hi = config.RATE_RANGE
    est_at_rate1 = word_count / config.WORDS_PER_SEC
    return max(lo, min(hi, est_at_rate1 / target_seconds))


class Narrator:
    def __init__(self, binary: str | None = None,
                 preferred: Sequence[str] | None = None):
        self.binary    = binary or config.ESPEAK_BINARY
        self.preferred = preferred
        self._voice: Optional[Voice] = None
        self._proc: Optional[subprocess.Popen] = None

    @property
    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    @property
    def speaking(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def voices(self) -> list[Voice]:
        res = subprocess.run([self.binary, "--voices"],
                             capture_output=True, text=True, check=True)
        return parse_voices(res.stdout)

    def voice(self) -> Optional[Voice]:
        if self._voice is None:
            try:
                self._voice = choose_voice(self.voices(), self.preferred)
            except (OSError, subprocess.CalledProcessError) as exc:
                print(f"[narration] could not list voices ({exc}); using espeak default")
        return self._voice

    def command(self, text: str, rate: float, voice: Optional[Voice]) -> list[str]:
        cmd = [self.binary]
        if voice:
            cmd += ["-v", voice.language]
        cmd += [
            "-s", str(int(round(config.BASE_WPM * rate))),
            "-p", str(int(round(50 * config.NARRATION_PITCH))),
            "-a", str(int(round(100 * config.NARRATION_VOLUME))),
            text,
        ]
        return cmd

    def speak(self, text: str, target_seconds: float | None = None) -> Optional[subprocess.Popen]:
        """Cancel any running utterance and start speaking *text*."""
        self.stop()
        if not self.available:
            print(f"[narration] '{self.binary}' not found; skipping narration")
            return None

        voice = self.voice()
        rate  = speech_rate(len(text.split()), target_seconds)
        self._proc = subprocess.Popen(self.command(text, rate, voice),
                                      stdout=subprocess.DEVNULL,
                                      stderr=subprocess.DEVNULL)
        print(f"[narration] speaking with {voice or 'default voice'} at rate {rate:.2f}")
        return self._proc

    def stop(self) -> None:
        if self.speaking:
            self._proc.terminate()
            try:
                self._proc.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                self._proc.kill()
        self._proc = None
