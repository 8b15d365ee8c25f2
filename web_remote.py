#!/usr/bin/env python3
"""
web_remote.py  –  browser remote for the Room 213 renderer

Routes
------
/               → control page: preview / record / narrate / cancel, live status
/status         → JSON: mode, capture state, progress, scene time, phase, artifact
/diag, /data    → JSON: renderer process load, memory, disk left for renders
/action?cmd=…   → queue a command (preview, record, narrate, cancel, quit)
/download       → last finished recording (404 when none was produced)
/log            → runtime.log, when the launcher tees stdout into it
"""

from __future__ import annotations
import http.server
import json
import os
import platform
import socketserver
import threading
import time
import traceback
import urllib.parse
from typing import TYPE_CHECKING, Any

import psutil

import config
from events   import COMMANDS, EventManager
from renderer import phase_at

if TYPE_CHECKING:                       # app imports pygame; keep it lazy
    from app import Room213App

_PROC      = psutil.Process()
_STARTED   = time.monotonic()
_DIAG_EVERY = getattr(config, "DIAG_REFRESH_INTERVAL", 1.0)
_diag_at   = 0.0

diagnostics: dict[str, Any] = {
    "process_cpu":     0.0,
    "process_rss":     "0 MB",
    "threads":         0,
    "system_cpu":      0.0,
    "system_mem":      "",
    "render_disk_free": "",
    "load_avg":        "",
    "uptime":          "0:00:00",
    "last_http_crash": "",
    "python":          platform.python_version(),
}


def _mb(n: int) -> str:
    return f"{n // 1024**2} MB"


def refresh_diagnostics(force: bool = False) -> dict[str, Any]:
    """Re-sample psutil at most every DIAG_REFRESH_INTERVAL seconds."""
    global _diag_at
    now = time.monotonic()
    if not force and now - _diag_at < _DIAG_EVERY:
        return diagnostics
    _diag_at = now

    with _PROC.oneshot():
        diagnostics["process_cpu"] = round(_PROC.cpu_percent(), 1)
        diagnostics["process_rss"] = _mb(_PROC.memory_info().rss)
        diagnostics["threads"]     = _PROC.num_threads()
    diagnostics["system_cpu"] = round(psutil.cpu_percent(), 1)
    vm = psutil.virtual_memory()
    diagnostics["system_mem"] = f"{_mb(vm.used)} / {_mb(vm.total)}"

    out_dir = config.OUTPUT_DIR if os.path.isdir(config.OUTPUT_DIR) else "."
    diagnostics["render_disk_free"] = _mb(psutil.disk_usage(out_dir).free)
    try:
        diagnostics["load_avg"] = ", ".join(f"{x:.2f}" for x in os.getloadavg())
    except (AttributeError, OSError):
        diagnostics["load_avg"] = "N/A"

    secs = int(now - _STARTED)
    diagnostics["uptime"] = f"{secs // 3600}:{secs // 60 % 60:02}:{secs % 60:02}"
    return diagnostics


def status_payload(app: "Room213App") -> dict[str, Any]:
    """Snapshot of what the app is doing, for /status."""
    orch     = app.orchestrator
    session  = orch.session
    artifact = orch.artifact
    t        = app.last_time
    return {
        "mode":       app.mode,
        "capture":    orch.status,
        "progress":   round(app.progress, 4),
        "scene_time": None if t is None else round(t, 3),
        "phase":      None if t is None else phase_at(t),
        "frames":     session.frames if session else 0,
        "artifact":   ({"filename": artifact.filename,
                        "bytes":    artifact.size,
                        "mime":     artifact.mime}
                       if artifact is not None and artifact.valid else None),
        "error":      app.last_error,
    }


class ReusableTCPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads      = True
    allow_reuse_address = True


class RemoteHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, *args):
        return

    @property
    def app(self) -> "Room213App":
        return self.server.app                                         # type: ignore

    def do_GET(self):
        url = urllib.parse.urlparse(self.path)
        route = {
            "/":         lambda: self._send(200, PAGE.encode(), "text/html; charset=utf-8"),
            "/status":   lambda: self._json(status_payload(self.app)),
            "/diag":     lambda: self._json(refresh_diagnostics()),
            "/data":     lambda: self._json(refresh_diagnostics()),
            "/log":      self._log,
            "/action":   lambda: self._action(urllib.parse.parse_qs(url.query)),
            "/download": self._download,
        }.get(url.path)
        if route is None:
            return self._json({"error": f"no route {url.path}"}, 404)
        route()

    # ── responses ─────────────────────────────────────────────────────────
    def _send(self, code: int, body: bytes = b"", ctype: str | None = None,
              headers: dict[str, str] | None = None):
        self.send_response(code)
        if ctype:
            self.send_header("Content-Type", ctype)
        for k, v in (headers or {}).items():
            self.send_header(k, v)
        if body:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _json(self, obj: Any, code: int = 200):
        self._send(code, json.dumps(obj).encode("utf-8"), "application/json")

    def _log(self):
        try:
            with open("runtime.log", "rb") as f:
                data = f.read()
        except OSError:
            return self._json({"error": "runtime.log not found"}, 404)
        self._send(200, data, "text/plain; charset=utf-8")

    def _action(self, qs: dict[str, list[str]]):
        cmd = qs.get("cmd", [""])[0]
        if cmd not in COMMANDS:
            return self._json({"error": f"unknown cmd '{cmd}'",
                               "commands": list(COMMANDS)}, 400)
        if cmd in ("preview", "record") and self.app.busy:
            return self._json(
                {"error": f"{self.app.mode} in progress; retry when it ends"}, 409)

        EventManager.post({"type": cmd})
        print(f"[web] queued '{cmd}'")
        self._send(204)

    def _download(self):
        artifact = self.app.orchestrator.artifact
        data = artifact.snapshot() if artifact is not None else None
        if data is None:
            return self._json({"error": "no artifact produced"}, 404)
        self._send(200, data, artifact.mime.split(";")[0] or "video/webm",
                   {"Content-Disposition": f'attachment; filename="{artifact.filename}"'})


PAGE = """<!doctype html><html><head><meta charset="utf-8">
<meta name="viewport" content="width=device-width">
<title>Room 213</title>
<style>
 body{background:#050508;color:#e9e6dc;font-family:monospace;margin:1.5em;}
 button,a{margin:3px;padding:8px 14px;border:1px solid #3a3a48;background:#1f1f27;
          color:#e9e6dc;font:inherit;text-decoration:none;cursor:pointer;}
 #bar{width:100%;max-width:420px;height:6px;background:#121217;margin:1em 0;}
 #fill{height:100%;width:0;background:#b22222;}
 pre{color:#c5b36a;}
</style></head><body>
<h2>Room 213 · 1080×1920 · 60 s</h2>
<button onclick="act('preview')">Preview</button>
<button onclick="act('record')">Generate video</button>
<button onclick="act('narrate')">Narrate</button>
<button onclick="act('cancel')">Cancel</button>
<a href="/download">Download room-213.webm</a>
<a href="/log">Log</a>
<div id="bar"><div id="fill"></div></div>
<pre id="status"></pre>
<pre id="diag"></pre>
<script>
 const show = o => Object.entries(o).map(([k,v]) => k.padEnd(18) + JSON.stringify(v)).join('\\n');
 async function act(cmd){
   const r = await fetch('/action?cmd=' + cmd);
   if (r.status !== 204) alert((await r.json()).error);
 }
 async function tick(){
   try {
     const st = await (await fetch('/status')).json();
     document.getElementById('status').textContent = show(st);
     document.getElementById('fill').style.width = (st.progress * 100).toFixed(1) + '%';
     document.getElementById('diag').textContent = show(await (await fetch('/diag')).json());
   } catch (e) { console.error(e); }
 }
 setInterval(tick, 250); tick();
</script></body></html>
"""


def start(app: "Room213App", port: int | None = None):
    """Serve the remote on a daemon thread; restart the server if it dies."""
    port = port or getattr(config, "WEB_PORT", 8080)

    def _serve():
        while True:
            try:
                with ReusableTCPServer(("", port), RemoteHandler) as httpd:
                    httpd.app = app
                    httpd.serve_forever()
            except Exception:  # noqa: BLE001 – surfaced through /diag
                diagnostics["last_http_crash"] = traceback.format_exc()
                print(f"[web] server crashed; restarting on port {port}")
                time.sleep(1)

    threading.Thread(target=_serve, name="web-remote", daemon=True).start()
    print(f"[web] remote listening on http://0.0.0.0:{port}/")
