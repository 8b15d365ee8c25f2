import numpy as np
import pytest

import config
from errors import InvalidScript, InvalidTimeInput
from noise import make_rng
from overlays import (FrameComposer, caption_band, caption_index, draw_caption,
                      layout_caption, wrap_text)
from script import ROOM_213, NarrationScript, default_script


def by_chars(text):
    return len(text) * 10.0


# ── script ─────────────────────────────────────────────────────────────────
def test_default_script():
    script = default_script()
    assert len(script) == len(ROOM_213) == 27
    assert script[0].startswith("I shouldn't have taken room")
    assert script.text.split()[:3] == ["I", "shouldn't", "have"]
    assert script.word_count == len(script.text.split())


@pytest.mark.parametrize("lines", [[], ["ok", "   "], ["ok", None]])
def test_script_rejects_empty_lines(lines):
    with pytest.raises(InvalidScript):
        NarrationScript(lines)


def test_script_is_immutable():
    script = NarrationScript(["a", "b"])
    with pytest.raises(AttributeError):
        script.lines = ("c",)


# ── segmentation ───────────────────────────────────────────────────────────
def test_caption_index_segments_timeline():
    assert caption_index(0.0, 27) == 0
    assert caption_index(30.0, 27) == 13
    assert caption_index(59.999, 27) == 26
    assert caption_index(60.0, 27) == 26
    assert caption_index(45.0, 1) == 0


def test_caption_index_never_goes_back():
    seen = [caption_index(i / 10, 27) for i in range(0, 601)]
    assert seen == sorted(seen)
    assert set(seen) == set(range(27))


def test_caption_index_rejects_bad_time():
    with pytest.raises(InvalidTimeInput):
        caption_index(-1.0, 27)


# ── wrapping ───────────────────────────────────────────────────────────────
def test_wrap_packs_greedily():
    assert wrap_text("aa bb cc", by_chars, 50) == ["aa bb", "cc"]
    assert wrap_text("aa bb cc", by_chars, 80) == ["aa bb cc"]


def test_wrap_keeps_overlong_word_on_its_own_line():
    lines = wrap_text("a supercalifragilistic b", by_chars, 50)
    assert lines == ["a", "supercalifragilistic", "b"]


def test_wrap_respects_width_for_multiword_lines():
    text = " ".join(ROOM_213)
    for line in wrap_text(text, by_chars, 300):
        assert by_chars(line) <= 300 or " " not in line


def test_wrap_empty():
    assert wrap_text("", by_chars, 100) == []


# ── layout / drawing ───────────────────────────────────────────────────────
def test_layout_is_bottom_anchored():
    script = NarrationScript(["word " * 60])
    lay = layout_caption(5.0, script, by_chars)

    assert lay.index == 0
    assert len(lay.lines) > 1
    assert lay.anchor_x == config.WIDTH / 2
    assert lay.baselines[-1] == pytest.approx(config.HEIGHT * 0.93)
    steps = np.diff(lay.baselines)
    assert np.allclose(steps, config.CAPTION_LINE_STEP)


def test_layout_is_deterministic():
    script = default_script()
    assert layout_caption(30.0, script, by_chars) == layout_caption(30.0, script, by_chars)


def test_draw_caption_darkens_band_and_leaves_input():
    frame = np.full((config.HEIGHT, config.WIDTH, 3), 200, np.uint8)
    composer = FrameComposer(rng=make_rng(1))
    out = draw_caption(frame, composer.caption(30.0), composer.font)

    assert (frame == 200).all()
    x, y, w, h = caption_band()
    # band corner, away from any glyphs
    assert out[int(y) + 2, int(x) + 2, 0] < 100
    assert out[10, 10, 0] == 200


def test_composer_is_reproducible_with_seed():
    a = FrameComposer(rng=make_rng(3))(30.0)
    b = FrameComposer(rng=make_rng(3))(30.0)
    assert a.shape == (config.HEIGHT, config.WIDTH, 3)
    assert np.array_equal(a, b)
