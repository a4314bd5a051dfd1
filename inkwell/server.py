"""Development server for Inkwell.

``inkwell serve`` builds the blog, serves it over HTTP and rebuilds whenever a
source file changes. Open browser tabs are told to reload over a websocket.

Key classes:
- DevServer: Owns the build/serve/watch cycle.
- LiveReload: Websocket endpoint that browsers listen to for reloads.
- _ReloadHandler: HTTP handler adding the reload snippet and answering 404s.
- _ChangeHandler: watchdog handler that asks the server to rebuild.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import CONFIG_FILENAME, build_site, load_config
from .errors import BuildError

WATCHED_DIRS = ("site", "assets", "data")

RELOAD_SCRIPT_TEMPLATE = """
<script>
(() => {{
  const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  ws.onmessage = (event) => {{
    const data = JSON.parse(event.data || '{{}}');
    if (data.type === 'reload') location.reload();
  }};
}})();
</script>
"""


def inject_reload_script(html: str, script: str) -> str:
    """Insert the reload script before ``</body>``, or append it."""
    if "</body>" in html:
        return html.replace("</body>", f"{script}</body>", 1)
    return html + script


class LiveReload:
    """Websocket channel pushing ``{"type": "reload"}`` to connected pages.

    The server runs on its own event loop, started by ``run`` in a
    background thread; ``notify`` may be called from any thread.
    """

    def __init__(self, port: int):
        self.port = port
        self.script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=port)
        self.clients: set = set()
        self.loop = asyncio.new_event_loop()

    def run(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self._serve())
        except OSError as exc:
            print(f"Live reload unavailable on port {self.port}: {exc}")

    async def _serve(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self.register, "0.0.0.0", self.port):
            await asyncio.Future()

    async def register(self, websocket) -> None:
        self.clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self.clients.discard(websocket)

    def notify(self) -> None:
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self.send_all(message), self.loop)

    async def send_all(self, message: str) -> None:
        """Send ``message`` to every client, forgetting the ones that fail."""
        gone = set()
        for client in list(self.clients):
            try:
                await client.send(message)
            except Exception:
                gone.add(client)
        self.clients -= gone

    def close(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)


class _ReloadHandler(SimpleHTTPRequestHandler):
    """Serves the built site; HTML responses carry the reload script."""

    reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=4001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-store")
        super().end_headers()

    def log_message(self, format, *args):  # pragma: no cover - console noise
        pass

    def list_directory(self, path):  # pragma: no cover - send_head never lists
        return self._not_found()

    def send_head(self):
        requested = Path(self.translate_path(self.path))
        if requested.is_dir():
            requested /= "index.html"
        if not requested.is_file():
            return self._not_found()
        if requested.suffix != ".html":
            return super().send_head()
        self._write_html(200, requested.read_text(encoding="utf-8"))
        return None

    def _not_found(self):
        page = Path(self.directory) / "404.html"
        if not page.is_file():
            self.send_error(404, "Not found")
            return None
        self._write_html(404, page.read_text(encoding="utf-8"))
        return None

    def _write_html(self, status: int, html: str) -> None:
        payload = inject_reload_script(html, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)


class DevServer:
    """Builds, serves and rebuilds a blog while it is being written.

    Builds land in a staging directory next to the output directory and are
    moved into place only when they succeed, so a broken post never takes
    the served site down.

    Attributes:
        project_root: Root directory of the project.
        config: Settings from ``inkwell.yaml``.
        output_dir: Directory being served.
        http_port: HTTP port.
        ws_port: Live reload websocket port.
        live_reload: The websocket channel.
    """

    debounce_seconds = 0.05
    settle_seconds = 0.05

    def __init__(self, project_root: Path, http_port: int | None = None, ws_port: int | None = None):
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config["output_dir"]
        self.staging_dir = self.output_dir.with_name(f"{self.output_dir.name}.staging")
        self.http_port = int(http_port or self.config["port"])
        if ws_port is None:
            ws_port = self.http_port + 1 if http_port else self.config.get("ws_port", self.http_port + 1)
        self.ws_port = int(ws_port)
        self.root_url = f"http://localhost:{self.http_port}"
        self.live_reload = LiveReload(self.ws_port)
        self._observer: Observer | None = None
        self._rebuilding = threading.Lock()
        self._finished_at = 0.0
        self._fingerprint: tuple | None = None

    def start(self, include_drafts: bool = False) -> None:  # pragma: no cover - integration path
        self.build(include_drafts)
        self._fingerprint = self.fingerprint()
        threading.Thread(target=self._serve_http, daemon=True).start()
        threading.Thread(target=self.live_reload.run, daemon=True).start()
        self._watch(include_drafts)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
        self.live_reload.close()

    def build(self, include_drafts: bool) -> None:
        """Build into the staging directory, then swap it in."""
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)
        build_site(
            self.project_root,
            include_drafts=include_drafts,
            root_url=self.root_url,
            output_dir_override=self.staging_dir,
        )
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        os.replace(self.staging_dir, self.output_dir)

    def rebuild(self, include_drafts: bool) -> None:
        """Rebuild after a change and reload connected pages.

        Ignored while another rebuild runs, right after one finished, or when
        no source file changed. A failed build is printed and the last good
        output stays up.
        """
        if time.time() - self._finished_at < self.debounce_seconds:
            return
        if not self._rebuilding.acquire(blocking=False):
            return
        try:
            fingerprint = self.fingerprint()
            if fingerprint is not None and fingerprint == self._fingerprint:
                return
            print("Change detected; rebuilding...")
            try:
                self.build(include_drafts)
            except BuildError as exc:
                print(f"Build failed: {exc}")
                return
            self._fingerprint = fingerprint
            if self.settle_seconds:
                time.sleep(self.settle_seconds)
            self.live_reload.notify()
        finally:
            self._finished_at = time.time()
            self._rebuilding.release()

    def fingerprint(self) -> tuple | None:
        """Path, mtime and size of every watched file, or None if there are none."""
        candidates = [self.project_root / CONFIG_FILENAME]
        for name in WATCHED_DIRS:
            folder = self.project_root / name
            if folder.is_dir():
                candidates.extend(p for p in sorted(folder.rglob("*")) if p.is_file())
        stamps = []
        for path in candidates:
            try:
                stat = path.stat()
            except OSError:
                continue
            stamps.append((path.relative_to(self.project_root).as_posix(), stat.st_mtime_ns, stat.st_size))
        return tuple(stamps) or None

    def is_ignored(self, path: Path) -> bool:
        """True for build output and version control files."""
        if ".git" in path.parts:
            return True
        return path.is_relative_to(self.output_dir) or path.is_relative_to(self.staging_dir)

    def _serve_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_SiteHandler", (_ReloadHandler,), {"reload_script": self.live_reload.script}
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        print(f"Serving {self.output_dir} at {self.root_url}")
        ThreadingHTTPServer(("", self.http_port), handler).serve_forever()

    def _watch(self, include_drafts: bool) -> None:  # pragma: no cover - integration path
        handler = _ChangeHandler(self, include_drafts)
        observer = Observer()
        for name in WATCHED_DIRS:
            folder = self.project_root / name
            if folder.is_dir():
                observer.schedule(handler, str(folder), recursive=True)
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer


class _ChangeHandler(FileSystemEventHandler):
    """Asks the dev server to rebuild when a source file changes."""

    def __init__(self, server: DevServer, include_drafts: bool):
        super().__init__()
        self.server = server
        self.include_drafts = include_drafts

    def on_any_event(self, event):
        if event.is_directory or self.server.is_ignored(Path(event.src_path)):
            return
        self.server.rebuild(self.include_drafts)
