import pygame
import pytest

from events import EventManager


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k)


@pytest.mark.parametrize("k, action", [
    (pygame.K_SPACE, "preview"),
    (pygame.K_p, "preview"),
    (pygame.K_r, "record"),
    (pygame.K_n, "narrate"),
    (pygame.K_q, "quit"),
    (pygame.K_f, "toggle_fullscreen"),
])
def test_keys(k, action):
    EventManager.handle(key(k))
    assert EventManager.poll() == {"type": action}
    assert EventManager.poll() is None


def test_escape_cancels_when_busy_quits_when_idle():
    EventManager.handle(key(pygame.K_ESCAPE), busy=True)
    EventManager.handle(key(pygame.K_ESCAPE), busy=False)
    assert EventManager.poll() == {"type": "cancel"}
    assert EventManager.poll() == {"type": "quit"}


def test_window_close_quits():
    EventManager.handle(pygame.event.Event(pygame.QUIT))
    assert EventManager.poll() == {"type": "quit"}


def test_unmapped_events_are_dropped():
    EventManager.handle(key(pygame.K_z))
    EventManager.handle(pygame.event.Event(pygame.MOUSEMOTION, pos=(1, 1)))
    assert EventManager.poll() is None


def test_post_is_fifo():
    EventManager.post({"type": "record"})
    EventManager.post({"type": "cancel"})
    assert [EventManager.poll(), EventManager.poll()] == [
        {"type": "record"}, {"type": "cancel"}]
