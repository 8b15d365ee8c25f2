import io

import numpy as np
import pytest

av = pytest.importorskip("av")

import sink
from capture import DONE, CaptureOrchestrator
from errors import SinkWriteFailure, UnsupportedEncoding


def test_unknown_encoders_are_rejected():
    assert not sink.codec_available("no-such-encoder-213")
    with pytest.raises(UnsupportedEncoding):
        sink.choose_codec([("no-such-encoder-213", "x")])


@pytest.fixture
def small_sink():
    try:
        s = sink.open_sink(10, width=32, height=32)
    except UnsupportedEncoding:
        pytest.skip("FFmpeg build has no VP9/VP8 encoder")
    yield s
    s.abort()


def test_encodes_webm(small_sink):
    for i in range(10):
        small_sink.push(np.full((32, 32, 3), i * 20, np.uint8))
    data = small_sink.close(timeout=10.0)

    assert data.startswith(b"\x1a\x45\xdf\xa3")      # EBML header
    assert small_sink.frames == 10
    assert small_sink.mime.startswith("video/webm;codecs=vp")


def test_wrong_frame_shape(small_sink):
    with pytest.raises(SinkWriteFailure):
        small_sink.push(np.zeros((16, 32, 3), np.uint8))


def test_push_after_close(small_sink):
    small_sink.push(np.zeros((32, 32, 3), np.uint8))
    small_sink.close(timeout=10.0)
    with pytest.raises(SinkWriteFailure):
        small_sink.push(np.zeros((32, 32, 3), np.uint8))


def decoded_times(data):
    with av.open(io.BytesIO(data)) as c:
        return [f.time for f in c.decode(video=0)]


def test_frames_on_the_same_timestamp_are_dropped(small_sink):
    frame = np.zeros((32, 32, 3), np.uint8)
    assert small_sink.push(frame, 0.0)
    assert not small_sink.push(frame, 0.01)      # rounds to the same 1/10 s slot
    assert small_sink.push(frame, 0.5)
    small_sink.close(timeout=10.0)
    assert small_sink.frames == 2


def test_slow_pass_still_spans_the_scene(fake_time):
    def slow_compose(t):
        fake_time.t += 0.08                      # ~12 fps, well under 30
        return np.full((32, 32, 3), int(t * 80) % 256, np.uint8)

    def open_small(fps, encoding=None):
        try:
            return sink.open_sink(fps, encoding, width=32, height=32)
        except UnsupportedEncoding:
            pytest.skip("FFmpeg build has no VP9/VP8 encoder")

    orch = CaptureOrchestrator(slow_compose, open_sink=open_small,
                               fps=30, duration=3.0, grace=0.0,
                               now=fake_time.now, sleep=fake_time.sleep)
    artifact = orch.capture()
    assert orch.status == DONE
    assert artifact.frames < 60

    times = decoded_times(artifact.data)
    assert times == sorted(times)
    assert times[0] == pytest.approx(0.0, abs=0.05)
    assert times[-1] > 2.7
