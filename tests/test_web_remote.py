import json
import threading
import urllib.error
import urllib.request
from types import SimpleNamespace

import numpy as np
import pytest

import web_remote
from capture import CaptureOrchestrator
from events import EventManager
from tests.conftest import StubSink


def fake_app(fake_time, **kw):
    orch = CaptureOrchestrator(lambda t: np.zeros((2, 2, 3), np.uint8),
                               open_sink=lambda fps, enc=None: StubSink(),
                               fps=10, duration=1.0, grace=0.0,
                               now=fake_time.now, sleep=fake_time.sleep)
    state = dict(mode="idle", busy=False, progress=0.0, last_time=None,
                 last_error=None, orchestrator=orch)
    state.update(kw)
    return SimpleNamespace(**state)


@pytest.fixture
def server(fake_time):
    app = fake_app(fake_time)
    httpd = web_remote.ReusableTCPServer(("127.0.0.1", 0), web_remote.RemoteHandler)
    httpd.app = app
    threading.Thread(target=httpd.serve_forever, daemon=True).start()
    yield app, f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def get(url):
    try:
        with urllib.request.urlopen(url, timeout=5) as r:
            return r.status, r.read()
    except urllib.error.HTTPError as e:
        return e.code, e.read()


def test_status_before_any_capture(fake_time):
    payload = web_remote.status_payload(fake_app(fake_time))
    assert payload["capture"] == "idle"
    assert payload["artifact"] is None
    assert payload["scene_time"] is None and payload["phase"] is None
    assert payload["frames"] == 0


def test_status_after_capture(fake_time):
    app = fake_app(fake_time, last_time=40.0, progress=1.0)
    app.orchestrator.capture()
    payload = web_remote.status_payload(app)

    assert payload["capture"] == "done"
    assert payload["phase"] == "distortion"
    assert payload["frames"] > 0
    assert payload["artifact"]["filename"] == "room-213.webm"
    json.dumps(payload)


def test_action_queues_command(server):
    _, base = server
    code, _ = get(base + "/action?cmd=record")
    assert code == 204
    assert EventManager.poll() == {"type": "record"}


def test_action_rejects_unknown_and_busy(server):
    app, base = server
    code, body = get(base + "/action?cmd=selfdestruct")
    assert code == 400

    app.busy, app.mode = True, "record"
    code, body = get(base + "/action?cmd=preview")
    assert code == 409
    assert EventManager.poll() is None

    code, _ = get(base + "/action?cmd=cancel")
    assert code == 204
    assert EventManager.poll() == {"type": "cancel"}


def test_download(server):
    app, base = server
    code, body = get(base + "/download")
    assert code == 404
    assert json.loads(body)["error"] == "no artifact produced"

    app.orchestrator.capture()
    code, body = get(base + "/download")
    assert code == 200
    assert body == app.orchestrator.artifact.data


def test_status_endpoint(server):
    _, base = server
    code, body = get(base + "/status")
    assert code == 200
    assert json.loads(body)["mode"] == "idle"


def test_diagnostics(server):
    snap = web_remote.refresh_diagnostics(force=True)
    assert snap["threads"] >= 1
    assert snap["process_rss"].endswith("MB")

    _, base = server
    code, body = get(base + "/diag")
    assert code == 200
    assert set(json.loads(body)) == set(snap)


def test_unknown_route(server):
    _, base = server
    code, _ = get(base + "/nope")
    assert code == 404


def test_download_after_release(server):
    app, base = server
    app.orchestrator.capture()
    app.orchestrator.artifact.release()

    code, body = get(base + "/download")
    assert code == 404
    assert json.loads(body)["error"] == "no artifact produced"
