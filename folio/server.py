"""Request-time preview server for Folio.

Serves posts straight from the pipeline instead of from built files:
- ``/`` renders the index from the current listing.
- Paths matching the post route call ``BuildOrchestrator.request``; a
  NotFoundPage becomes a 404 with the rendered 404 page.
- Anything else is a 404.

With ``live=True`` the orchestrator runs in development mode, so every
request re-enumerates and re-renders from the content directory.

Key classes:
- PreviewServer: Resolves request paths to (status, HTML) pairs and runs
  the HTTP server.
- _PreviewHandler: HTTP request handler delegating to PreviewServer.
"""

from __future__ import annotations

import functools
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlsplit

from .build import (
    MODE_DEVELOPMENT,
    create_engine,
    create_orchestrator,
    create_routes,
    load_config,
)
from .content import NotFoundPage
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)


class PreviewServer:
    """Preview server answering requests through the pipeline.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        port: HTTP port.
        orchestrator: Pipeline used for lookups.
    """

    def __init__(
        self,
        project_root: Path,
        port: int | None = None,
        live: bool = False,
        include_drafts: bool = False,
    ):
        self.project_root = project_root
        self.config = load_config(project_root)
        if live:
            self.config["mode"] = MODE_DEVELOPMENT
        self.port = int(port or self.config.get("port", 4000))
        self.orchestrator = create_orchestrator(project_root, self.config, include_drafts)
        self.routes = create_routes(self.config, self.orchestrator)
        self.engine = create_engine(project_root, self.config, self.routes)

    def handle(self, raw_path: str) -> tuple[int, str]:
        """Resolve a request path.

        Args:
            raw_path: Request path, possibly with a query string.

        Returns:
            Tuple of (HTTP status, HTML body).
        """
        path = urlsplit(raw_path).path
        try:
            if path in ("/", "/index.html"):
                return 200, self.engine.render_index(self.orchestrator.listing())
            found = self.routes.match(path)
            if found is None:
                return 404, self.engine.render_not_found()
            route, content_id = found
            page = route.handler(content_id)
        except StoreUnavailable as exc:
            logger.error("Cannot serve %s: %s", path, exc)
            return 503, "<h1>503 - Content store unavailable</h1>"
        if isinstance(page, NotFoundPage):
            return 404, self.engine.render_not_found()
        return 200, self.engine.render_post(page)

    def start(self) -> None:  # pragma: no cover - integration path
        if self.orchestrator.mode != MODE_DEVELOPMENT:
            self.orchestrator.build()
        handler = functools.partial(_PreviewHandler, preview=self)
        httpd = ThreadingHTTPServer(("", self.port), handler)
        print(f"Serving {self.project_root} at http://localhost:{self.port}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            httpd.server_close()


class _PreviewHandler(BaseHTTPRequestHandler):
    """HTTP request handler that delegates GET requests to a PreviewServer."""

    def __init__(self, *args, preview: PreviewServer, **kwargs):
        self.preview = preview
        super().__init__(*args, **kwargs)

    def do_GET(self):
        status, body = self.preview.handle(self.path)
        encoded = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        self.end_headers()
        self.wfile.write(encoded)

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)
