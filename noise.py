"""
noise.py

CRT luminance noise, the only random layer of the scene.

The generator is always passed in, never taken from module state, so a
seeded numpy Generator reproduces a frame byte for byte while production
code gets fresh OS entropy per session.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

import config


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Seeded generator for tests, OS entropy when *seed* is None."""
    return np.random.default_rng(seed)


def noise_bound(strength: float | None = None) -> float:
    """Largest per-channel change apply_noise() can make, before rounding."""
    strength = config.NOISE_STRENGTH if strength is None else strength
    return 0.5 * 255.0 * strength


def apply_noise(frame: np.ndarray,
                rng: np.random.Generator,
                strength: float | None = None) -> np.ndarray:
    """
    Return a new uint8 frame with uniform noise in ±noise_bound() added.

    One sample per pixel shifts R, G and B together, so the grain is
    luminance only.  Results are rounded half-to-even and clamped to 0..255.
    """
    strength = config.NOISE_STRENGTH if strength is None else strength
    h, w = frame.shape[:2]

    n = (rng.random((h, w), dtype=np.float32) - 0.5) * np.float32(255.0 * strength)
    out = frame.astype(np.float32) + n[..., None]
    np.rint(out, out=out)
    np.clip(out, 0, 255, out=out)
    return out.astype(np.uint8)
