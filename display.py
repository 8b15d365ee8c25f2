"""
display.py

Display surface for composited frames: letterboxed blit onto the pygame
window plus a thin progress bar along the bottom edge.
"""
import numpy as np
import pygame

import config

BAR_BG   = (26, 26, 26)
BAR_FILL = (178, 34, 34)


def present_frame(screen: pygame.Surface, frame: np.ndarray) -> None:
    """
    Scale and letter-/pillar-box a raw RGB frame onto `screen`.
    """
    surf = pygame.image.frombuffer(np.ascontiguousarray(frame), frame.shape[1::-1], "RGB")
    sw, sh = screen.get_size()
    vw, vh = surf.get_size()
    scale = min(sw / vw, sh / vh)
    surf = pygame.transform.smoothscale(surf, (int(vw * scale), int(vh * scale)))
    screen.fill((0, 0, 0))
    x = (sw - surf.get_width()) // 2
    y = (sh - surf.get_height()) // 2
    screen.blit(surf, (x, y))


def draw_progress(screen: pygame.Surface, progress: float) -> None:
    """Thin bar along the bottom edge, 0..1 of the pass."""
    if not getattr(config, "SHOW_PROGRESS", True):
        return
    sw, sh = screen.get_size()
    h = max(4, sh // 120)
    pygame.draw.rect(screen, BAR_BG, (0, sh - h, sw, h))
    fill = int(sw * max(0.0, min(1.0, progress)))
    if fill:
        pygame.draw.rect(screen, BAR_FILL, (0, sh - h, fill, h))
