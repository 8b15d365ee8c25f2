"""
overlays.py

Caption band for the Room 213 renderer, and the composer that stacks
scene + noise + caption into the frame that is shown and recorded.

The active line is picked from scene time alone, never from narration
progress, so captions stay locked to the picture.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont

import config
from noise import make_rng
from renderer import load_font, render_scene
from script import NarrationScript, default_script
from timing import check_time

Measure = Callable[[str], float]


# ── segmentation ───────────────────────────────────────────────────────────
def caption_index(t: float, n_lines: int, duration: float | None = None) -> int:
    """floor(t / duration * n), clamped to [0, n - 1]."""
    duration = config.DURATION if duration is None else duration
    t = check_time(t, duration)
    seg = math.floor((t / duration) * n_lines)
    return max(0, min(n_lines - 1, seg))


def wrap_text(text: str, measure: Measure, max_width: float) -> list[str]:
    """
    Greedy left-to-right word packing.

    A word joins the current line unless that would push it past
    *max_width*; then the line is closed and the word starts a new one.
    A single word wider than *max_width* still gets a line of its own.
    """
    lines: list[str] = []
    line = ""
    for word in text.split():
        test = f"{line} {word}" if line else word
        if line and measure(test) > max_width:
            lines.append(line)
            line = word
        else:
            line = test
    if line:
        lines.append(line)
    return lines


@dataclass(frozen=True)
class CaptionLayout:
    index: int
    lines: tuple[str, ...]
    anchor_x: float
    baselines: tuple[float, ...]               # bottom edge of each line
    band: tuple[float, float, float, float]    # x, y, w, h


def caption_band() -> tuple[float, float, float, float]:
    fx, fy, fw, h = config.CAPTION_BAND
    return (config.WIDTH * fx, config.HEIGHT * fy, config.WIDTH * fw, h)


def layout_caption(t: float, script: NarrationScript, measure: Measure) -> CaptionLayout:
    """Active line at *t*, wrapped and bottom-anchored, most recent line lowest."""
    idx   = caption_index(t, len(script))
    lines = wrap_text(script[idx], measure, config.WIDTH * config.CAPTION_MAX_WIDTH)
    base  = config.HEIGHT * config.CAPTION_BASELINE
    n     = len(lines)
    return CaptionLayout(
        index=idx,
        lines=tuple(lines),
        anchor_x=config.WIDTH / 2,
        baselines=tuple(base - (n - 1 - i) * config.CAPTION_LINE_STEP for i in range(n)),
        band=caption_band(),
    )


def draw_caption(frame: np.ndarray, layout: CaptionLayout,
                 font: ImageFont.ImageFont) -> np.ndarray:
    """Return a copy of *frame* with the caption band and text drawn on it."""
    img  = Image.fromarray(frame)
    draw = ImageDraw.Draw(img, "RGBA")

    x, y, w, h = layout.band
    alpha = int(round(255 * config.CAPTION_BAND_ALPHA))
    draw.rectangle([x, y, x + w - 1, y + h - 1], fill=(0, 0, 0, alpha))
    for text, by in zip(layout.lines, layout.baselines):
        draw.text((layout.anchor_x, by), text, font=font,
                  fill=config.CAPTION_COLOR, anchor="md")
    return np.array(img)


# ── composer ───────────────────────────────────────────────────────────────
class FrameComposer:
    """
    Callable producing the finished frame for a scene time.

    Holds the script, the caption font and the noise generator; pass a
    seeded generator (or seed) for reproducible output.
    """

    def __init__(self,
                 script: Optional[NarrationScript] = None,
                 rng: Optional[np.random.Generator] = None,
                 font: Optional[ImageFont.ImageFont] = None):
        self.script = script or default_script()
        self.rng    = rng if rng is not None else make_rng()
        self.font   = font or load_font(config.CAPTION_FONT_SIZE)

    def measure(self, text: str) -> float:
        return self.font.getlength(text)

    def caption(self, t: float) -> CaptionLayout:
        return layout_caption(t, self.script, self.measure)

    def __call__(self, t: float) -> np.ndarray:
        frame = render_scene(t, self.rng)
        return draw_caption(frame, self.caption(t), self.font)
