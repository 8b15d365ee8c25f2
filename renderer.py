"""
renderer.py

Procedural scene renderer for the Room 213 short.

Every visual decision is a function of scene time alone:

    scene_layout(t)      → SceneLayout   (phase, geometry, effect levels)
    draw_scene(t)        → HxWx3 uint8    (deterministic raster)
    render_scene(t, rng) → HxWx3 uint8    (raster + CRT noise)

Layers, back to front: gradient, vignette, floor / walls, door, flicker
wash, shadow band, bed + lamp (interior), silhouette (distortion), noise.
Camera sway is an offset applied while drawing; it never enters the
layout math.
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont

import config
from noise import apply_noise
from timing import check_time

APPROACH, INTERIOR, DISTORTION, BLACKOUT = "approach", "interior", "distortion", "blackout"


# ── fonts ──────────────────────────────────────────────────────────────────
@functools.lru_cache(maxsize=8)
def load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    """First TrueType candidate from config that loads, else Pillow's default."""
    names = config.BOLD_FONT_CANDIDATES if bold else config.FONT_CANDIDATES
    for name in names:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    print(f"[renderer] no TrueType font found in {names}; using Pillow default")
    return ImageFont.load_default(size=size)


# ── timeline math ──────────────────────────────────────────────────────────
def phase_at(t: float) -> str:
    if t < config.INTERIOR_START:
        return APPROACH
    if t < config.DISTORTION_START:
        return INTERIOR
    if t < config.BLACKOUT_START:
        return DISTORTION
    return BLACKOUT


def door_progress(t: float) -> float:
    return min(1.0, t / config.DOOR_APPROACH_SEC)


def camera_sway(t: float) -> tuple[float, float]:
    ax, ay = config.SWAY_AMPLITUDE
    wx, wy = config.SWAY_FREQ
    return ax * math.sin(wx * t), ay * math.cos(wy * t)


def flicker_level(t: float) -> float:
    """Sum of the strobe, forced-window and blackout triggers."""
    fa, fb = config.STROBE_FREQS
    lo, hi = config.FORCED_FLICKER_WINDOW

    level = 0.0
    if math.sin(t * fa) * math.sin(t * fb) > config.STROBE_THRESHOLD:
        level += config.STROBE_LEVEL
    if lo < t < hi:
        level += config.FORCED_FLICKER_LEVEL
    if t > config.BLACKOUT_START:
        level += config.BLACKOUT_LEVEL
    return level


def fade_in(t: float, start: float) -> float:
    """0 until *start*, then a linear ramp to 1 over FADE_IN_SEC."""
    if t <= start:
        return 0.0
    if config.FADE_IN_SEC <= 0:
        return 1.0
    return min(1.0, (t - start) / config.FADE_IN_SEC)


def creep_progress(t: float) -> Optional[float]:
    """Silhouette progress in [0, 1]; None before the distortion threshold."""
    if t <= config.DISTORTION_START:
        return None
    return min(1.0, (t - config.DISTORTION_START) / config.CREEP_SEC)


def lamp_pulse(t: float) -> float:
    return 0.2 + 0.1 * math.sin(t * config.LAMP_PULSE_FREQ)


@dataclass(frozen=True)
class SceneLayout:
    t: float
    phase: str
    sway: tuple[float, float]
    horizon: float
    door_progress: float
    door: tuple[float, float, float, float]      # x, y, w, h
    plate: tuple[float, float, float, float]
    flicker: float
    shadow: tuple[float, float, float, float]
    interior: float                              # bed / lamp opacity 0..1
    lamp_pulse: float
    creep: Optional[float]
    silhouette: Optional[tuple[float, float]]    # centre, unswayed
    distortion: float                            # silhouette opacity 0..1

    @property
    def flicker_alpha(self) -> float:
        return config.FLICKER_ALPHA * self.flicker


def scene_layout(t: float) -> SceneLayout:
    t = check_time(t)
    w, h = config.WIDTH, config.HEIGHT
    horizon = h * config.HORIZON_FRAC

    # door: far footprint → near footprint, horizontally centred
    p = door_progress(t)
    (fw, fh), (nw, nh) = config.DOOR_FAR_SIZE, config.DOOR_NEAR_SIZE
    dw = fw - p * (fw - nw)
    dh = fh - p * (fh - nh)
    dx = w / 2 - dw / 2
    dy = horizon - dh + config.DOOR_SILL

    pw, ph = config.PLATE_SIZE
    plate = (dx + dw / 2 - pw / 2, dy + dh * 0.2, pw, ph)

    # shadow band sweeping under the door
    phase_frac = (t % config.SHADOW_PERIOD) / config.SHADOW_PERIOD
    sy = dy + dh - 30 + math.sin(phase_frac * math.pi * 2) * config.SHADOW_SWING
    shadow = (dx - 40, sy, dw + 80, 20)

    creep = creep_progress(t)
    centre = None
    if creep is not None:
        (x0, y0), (x1, y1) = config.SILHOUETTE_PATH
        centre = (w * (x0 + creep * (x1 - x0)), h * (y0 + creep * (y1 - y0)))

    return SceneLayout(
        t=t,
        phase=phase_at(t),
        sway=camera_sway(t),
        horizon=horizon,
        door_progress=p,
        door=(dx, dy, dw, dh),
        plate=plate,
        flicker=flicker_level(t),
        shadow=shadow,
        interior=fade_in(t, config.INTERIOR_START),
        lamp_pulse=lamp_pulse(t),
        creep=creep,
        silhouette=centre,
        distortion=fade_in(t, config.DISTORTION_START),
    )


# ── raster helpers ─────────────────────────────────────────────────────────
def _box(x, y, w, h, ox=0.0, oy=0.0) -> list[float]:
    """x/y/w/h rectangle → Pillow's inclusive corner box."""
    return [x + ox, y + oy, x + ox + w - 1, y + oy + h - 1]


def _pts(points, ox, oy) -> list[tuple[float, float]]:
    return [(x + ox, y + oy) for x, y in points]


def _rgba(rgb, alpha: float) -> tuple[int, int, int, int]:
    return (*rgb, int(round(255 * max(0.0, min(1.0, alpha)))))


@functools.lru_cache(maxsize=2)
def _backdrop(width: int, height: int) -> np.ndarray:
    """Vertical gradient darkened by a radial vignette.  Shared; read-only."""
    top = np.array(config.BG_TOP, np.float64)
    bot = np.array(config.BG_BOTTOM, np.float64)
    ys  = (np.arange(height) + 0.5) / height
    grad = top + (bot - top) * ys[:, None]                       # (H, 3)

    r0 = min(width, height) * 0.2
    r1 = max(width, height) * 0.75
    yy = (np.arange(height) + 0.5 - height / 2)[:, None]
    xx = (np.arange(width) + 0.5 - width / 2)[None, :]
    r  = np.sqrt(xx * xx + yy * yy)
    a  = config.VIGNETTE_ALPHA * np.clip((r - r0) / (r1 - r0), 0.0, 1.0)

    out = grad[:, None, :] * (1.0 - a[..., None])
    out = np.rint(out).astype(np.uint8)
    out.setflags(write=False)
    return out


def _blend_radial(arr: np.ndarray, cx: float, cy: float,
                  r0: float, r1: float, color, alpha: float) -> None:
    """In place: radial gradient from *alpha* at r0 to 0 at r1."""
    h, w = arr.shape[:2]
    x0, x1 = max(0, int(cx - r1)), min(w, int(math.ceil(cx + r1)) + 1)
    y0, y1 = max(0, int(cy - r1)), min(h, int(math.ceil(cy + r1)) + 1)
    if x0 >= x1 or y0 >= y1:
        return

    yy = (np.arange(y0, y1) + 0.5 - cy)[:, None]
    xx = (np.arange(x0, x1) + 0.5 - cx)[None, :]
    r  = np.sqrt(xx * xx + yy * yy)
    a  = (alpha * (1.0 - np.clip((r - r0) / (r1 - r0), 0.0, 1.0))).astype(np.float32)

    region = arr[y0:y1, x0:x1].astype(np.float32)
    region += (np.asarray(color, np.float32) - region) * a[..., None]
    arr[y0:y1, x0:x1] = np.rint(region).astype(np.uint8)


# ── layers ─────────────────────────────────────────────────────────────────
def _draw_room(draw: ImageDraw.ImageDraw, lay: SceneLayout) -> None:
    w, h = config.WIDTH, config.HEIGHT
    ox, oy = lay.sway
    hz = lay.horizon

    draw.polygon(_pts([(0, hz), (w, hz), (w, h), (0, h)], ox, oy),
                 fill=config.FLOOR_COLOR)
    draw.polygon(_pts([(0, 0), (w * 0.2, hz), (0, h)], ox, oy),
                 fill=config.WALL_COLOR)
    draw.polygon(_pts([(w, 0), (w * 0.8, hz), (w, h)], ox, oy),
                 fill=config.WALL_COLOR)


def _draw_door(draw: ImageDraw.ImageDraw, lay: SceneLayout) -> None:
    ox, oy = lay.sway
    x, y, w, h = lay.door
    draw.rectangle(_box(x, y, w, h, ox, oy), fill=config.DOOR_COLOR)
    # 6px frame stroke straddles the edge
    draw.rectangle(_box(x - 3, y - 3, w + 6, h + 6, ox, oy),
                   outline=config.FRAME_COLOR, width=6)

    px, py, pw, ph = lay.plate
    draw.rectangle(_box(px, py, pw, ph, ox, oy), fill=config.PLATE_COLOR)
    draw.rectangle(_box(px - 1, py - 1, pw + 2, ph + 2, ox, oy),
                   outline=config.PLATE_EDGE, width=3)
    draw.text((px + pw / 2 + ox, py + ph / 2 + 2 + oy), config.DOOR_NUMBER,
              font=load_font(config.PLATE_FONT_SIZE, bold=True),
              fill=config.NUMBER_COLOR, anchor="mm")


def _draw_shadow(draw: ImageDraw.ImageDraw, lay: SceneLayout) -> None:
    ox, oy = lay.sway
    draw.rectangle(_box(*lay.shadow, ox, oy), fill=_rgba((0, 0, 0), config.SHADOW_ALPHA))


def _draw_furniture(draw: ImageDraw.ImageDraw, lay: SceneLayout) -> None:
    w, h = config.WIDTH, config.HEIGHT
    ox, oy = lay.sway
    a = lay.interior

    bx, by = w * 0.2, h * 0.58
    draw.rectangle(_box(bx, by, w * 0.6, 36, ox, oy), fill=_rgba(config.BED_COLOR, a))
    draw.rectangle(_box(bx + 12, by - 70, w * 0.6 - 24, 70, ox, oy),
                   fill=_rgba(config.HEAD_COLOR, a))

    draw.rectangle(_box(w * 0.72, h * 0.5, 16, 100, ox, oy), fill=_rgba(config.LAMP_COLOR, a))
    draw.polygon(_pts([(w * 0.69, h * 0.5), (w * 0.81, h * 0.5), (w * 0.75, h * 0.45)], ox, oy),
                 fill=_rgba(config.LAMP_COLOR, a))


def _draw_lamp_light(arr: np.ndarray, lay: SceneLayout) -> None:
    ox, oy = lay.sway
    r0, r1 = config.LAMP_CONE_RADII
    _blend_radial(arr,
                  config.WIDTH * 0.75 + ox, config.HEIGHT * 0.49 + oy,
                  r0, r1, config.LAMP_LIGHT,
                  (0.08 + lay.lamp_pulse) * lay.interior)


def _draw_silhouette(draw: ImageDraw.ImageDraw, lay: SceneLayout) -> None:
    cx, cy = lay.silhouette
    sx, sy = cx + lay.sway[0], cy + lay.sway[1]
    fill = _rgba((0, 0, 0), config.SILHOUETTE_ALPHA * lay.distortion)

    draw.ellipse([sx - 40, sy - 90 - 54, sx + 40, sy - 90 + 54], fill=fill)   # head
    draw.rectangle(_box(-28, -90, 56, 140, sx, sy), fill=fill)                 # torso
    draw.polygon(_pts([(-28, -50), (-80, 10), (-70, 20), (-18, -40)], sx, sy), fill=fill)
    draw.polygon(_pts([(28, -50), (80, 10), (70, 20), (18, -40)], sx, sy), fill=fill)


# ── public entry points ────────────────────────────────────────────────────
def draw_scene(t: float) -> np.ndarray:
    """Deterministic frame at scene time *t* (no noise)."""
    lay = scene_layout(t)

    img  = Image.fromarray(_backdrop(config.WIDTH, config.HEIGHT))
    draw = ImageDraw.Draw(img, "RGBA")

    _draw_room(draw, lay)
    _draw_door(draw, lay)
    if lay.flicker > 0:
        draw.rectangle([0, 0, config.WIDTH - 1, config.HEIGHT - 1],
                       fill=_rgba((255, 255, 255), lay.flicker_alpha))
    _draw_shadow(draw, lay)

    if lay.interior > 0:
        _draw_furniture(draw, lay)
        arr = np.array(img)
        _draw_lamp_light(arr, lay)
        img  = Image.fromarray(arr)
        draw = ImageDraw.Draw(img, "RGBA")

    if lay.silhouette is not None and lay.distortion > 0:
        _draw_silhouette(draw, lay)

    return np.array(img)


def render_scene(t: float, rng: np.random.Generator) -> np.ndarray:
    """draw_scene() plus the CRT noise layer drawn from *rng*."""
    return apply_noise(draw_scene(t), rng)
