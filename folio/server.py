"""HTTP server for Folio.

Serves the rendered pages and the public asset directory:
- Routes ``/`` and ``/read/<slug>`` through SiteApp.
- Serves everything else from the public directory, with an immutable
  Cache-Control header for hash-suffixed assets.
- Rejects directory listings and missing paths with the 404 page.
- Optionally watches the content directory, swaps in a freshly loaded index
  on change and tells connected browsers to reload.

Key classes:
- SiteServer: Loads the site and runs the HTTP (and live reload) servers.
- _SiteHandler: HTTP request handler for pages and static files.
- _ChangeHandler: File system event handler that triggers content reloads.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .app import Response, SiteApp
from .assets import AssetUrls, load_hash_key
from .config import load_config, resolve_path
from .content import load_contents
from .extractors import ContentParseError
from .templates import TemplateEngine

logger = logging.getLogger(__name__)


class _SiteHandler(SimpleHTTPRequestHandler):
    """HTTP request handler serving pages from SiteApp and static files.

    Attributes:
        app: Router for page requests; set on a per-server subclass.
    """

    app: SiteApp
    _static_path: str | None = None

    def do_GET(self):
        if not self._serve_page(head_only=False):
            super().do_GET()

    def do_HEAD(self):
        if not self._serve_page(head_only=True):
            super().do_HEAD()

    def _serve_page(self, head_only: bool) -> bool:
        response = self.app.handle(self.path)
        if response is None:
            self._static_path = urlsplit(self.path).path
            return False
        self._send(response, head_only)
        return True

    def _send(self, response: Response, head_only: bool = False) -> None:
        self._static_path = None
        self.send_response(response.status)
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(response.body)))
        self.end_headers()
        if not head_only:
            self.wfile.write(response.body)

    def end_headers(self):
        if self._static_path is not None:
            cache_control = self.app.asset_urls.cache_control(self._static_path)
            if cache_control:
                self.send_header("Cache-Control", cache_control)
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def _serve_404(self):
        """Serve the rendered 404 page."""
        self._send(self.app.not_found(), head_only=self.command == "HEAD")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir() or not path_obj.exists():
            return self._serve_404()
        return super().send_head()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class SiteServer:
    """Loads the site and serves it over HTTP.

    Content and the asset hash key are loaded before the socket is bound,
    so no request ever sees a half-initialised site.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        http_port: Port for the HTTP server.
        ws_port: Port for live reload websocket connections.
        live_reload: Whether to watch content and push reloads.
        app: The loaded SiteApp, once ``load`` has run.
    """

    def __init__(
        self,
        project_root: Path,
        config: dict[str, Any] | None = None,
        http_port: int | None = None,
        ws_port: int | None = None,
        live_reload: bool = False,
    ):
        """Initialize the server.

        Args:
            project_root: Root directory of the project.
            config: Loaded configuration (loaded from the project when omitted).
            http_port: Optional override for the HTTP port.
            ws_port: Optional override for the websocket port.
            live_reload: Watch the content directory and reload browsers.
        """
        self.project_root = project_root
        self.config = config if config is not None else load_config(project_root)
        self.contents_dir = resolve_path(project_root, self.config, "contents_dir")
        self.public_dir = resolve_path(project_root, self.config, "public_dir")
        base_http = int(http_port or self.config.get("port", 8000))
        self.http_port = base_http
        self.ws_port = (
            ws_port
            if ws_port is not None
            else (
                base_http + 1
                if http_port is not None
                else int(self.config.get("ws_port", base_http + 1))
            )
        )
        self.live_reload = live_reload
        self.app: SiteApp | None = None
        self._httpd: ThreadingHTTPServer | None = None
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._reloading = False
        self._last_reload_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.05

    def load(self) -> SiteApp:
        """Load content and the asset hash key and build the SiteApp.

        Raises:
            ContentParseError: If any content file is malformed.
            FileNotFoundError: If the content directory is missing.
        """
        index = load_contents(
            self.contents_dir, strict_slugs=bool(self.config.get("strict_slugs"))
        )
        asset_urls = AssetUrls(
            load_hash_key(resolve_path(self.project_root, self.config, "hashkey_path"))
        )
        if asset_urls.enabled:
            logger.info("cache-busting enabled with key %s", asset_urls.hash_key)
        engine = TemplateEngine(
            self.config,
            asset_urls,
            reload_port=self.ws_port if self.live_reload else None,
        )
        self.app = SiteApp(index, engine, asset_urls)
        self._last_signature = self._compute_signature()
        return self.app

    def make_handler(self):
        """Return a request handler factory bound to the loaded app."""
        if self.app is None:
            raise RuntimeError("SiteServer.load() must run before serving")
        handler_cls = type("_SiteHandlerWithApp", (_SiteHandler,), {"app": self.app})
        return functools.partial(handler_cls, directory=str(self.public_dir))

    def start(self) -> None:  # pragma: no cover - integration path
        if self.app is None:
            self.load()
        self._httpd = ThreadingHTTPServer(("", self.http_port), self.make_handler())
        if self.live_reload:
            threading.Thread(target=self._start_ws, daemon=True).start()
            self._start_watcher()
        logger.info("Serving %s at http://localhost:%d", self.project_root, self.http_port)
        try:
            self._httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._httpd is not None:
            self._httpd.server_close()
            self._httpd = None
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("WebSocket server failed to start (port %d): %s", self.ws_port, exc)

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self):
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in self._ws_clients:
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        observer.schedule(handler, str(self.contents_dir), recursive=False)
        observer.start()
        self._observer = observer

    def reload_content(self) -> bool:
        """Reload the content directory and swap the new index in.

        A failed reload keeps the previous index.

        Returns:
            True if a new index was swapped in.
        """
        now = time.time()
        if self._reloading or (now - self._last_reload_at) < self._debounce_seconds:
            return False
        signature = self._compute_signature()
        if signature == self._last_signature:
            return False
        self._reloading = True
        try:
            logger.info("Change detected; reloading content...")
            try:
                index = load_contents(
                    self.contents_dir,
                    strict_slugs=bool(self.config.get("strict_slugs")),
                )
            except (ContentParseError, OSError) as exc:
                logger.error("Reload failed, keeping previous content: %s", exc)
                return False
            if self.app is not None:
                self.app.swap_index(index)
            self._last_signature = signature
            self._broadcast_reload()
            return True
        finally:
            self._reloading = False
            self._last_reload_at = time.time()

    def _compute_signature(self) -> tuple | None:
        if not self.contents_dir.is_dir():
            return None
        entries: list[tuple] = []
        for path in sorted(self.contents_dir.glob("*.md")):
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((path.name, stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: SiteServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        if not str(event.src_path).endswith(".md"):
            return
        self.server.reload_content()
