import numpy as np
import pygame

import config
from display import BAR_FILL, draw_progress, present_frame


def test_portrait_frame_is_pillarboxed():
    screen = pygame.Surface((200, 100))
    frame = np.full((100, 50, 3), 255, np.uint8)
    present_frame(screen, frame)

    assert screen.get_at((5, 50))[:3] == (0, 0, 0)
    assert screen.get_at((195, 50))[:3] == (0, 0, 0)
    assert screen.get_at((100, 50))[:3] == (255, 255, 255)


def test_progress_bar(monkeypatch):
    monkeypatch.setattr(config, "SHOW_PROGRESS", True)
    screen = pygame.Surface((120, 240))
    draw_progress(screen, 0.5)
    assert screen.get_at((10, 239))[:3] == BAR_FILL
    assert screen.get_at((110, 239))[:3] != BAR_FILL


def test_progress_bar_can_be_hidden(monkeypatch):
    monkeypatch.setattr(config, "SHOW_PROGRESS", False)
    screen = pygame.Surface((120, 240))
    draw_progress(screen, 1.0)
    assert screen.get_at((10, 239))[:3] == (0, 0, 0)
