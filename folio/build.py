"""Site building for Folio.

This module wires the pipeline together: it loads configuration, builds
every enumerated post with bounded concurrency, answers request-time
lookups according to the fallback policy, and writes the result through
the template engine.

Key functions and classes:
- load_config: Loads site configuration from folio.yaml.
- BuildOrchestrator: Builds all posts and serves request-time lookups.
- BuildResult: Outcome of a build.
- build_site: Build and write a project in one call.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import yaml
from jinja2 import TemplateError

from .content import FileContentStore, NotFoundPage, RenderedContent
from .errors import ConfigError, MalformedContent, NotFound, RenderFailure, StoreUnavailable
from .paths import PathEnumerator
from .protocols import ContentStore
from .renderers import MarkdownRenderer
from .resolver import ContentResolver
from .routes import RouteTable
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)

FALLBACK_OFF = "off"
FALLBACK_LAZY = "lazy"
MODE_PRODUCTION = "production"
MODE_DEVELOPMENT = "development"

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG = {
    "content_dir": "posts",
    "output_dir": "output",
    "templates_dir": "templates",
    "route": "/posts/{id}/",
    "fallback": FALLBACK_OFF,
    "mode": MODE_PRODUCTION,
    "concurrency": 4,
    "retry_attempts": 3,
    "retry_wait": 0.1,
    "sanitize": False,
    "date_format": "%B %-d, %Y",
    "title": "Folio",
    "port": 4000,
}

# Per-id failures that leave the rest of the build intact.
PAGE_ERRORS = (RenderFailure, NotFound, MalformedContent, StoreUnavailable)

Page = RenderedContent | NotFoundPage


class BuildError(Exception):
    """Error while writing the site, with file context.

    Attributes:
        source_path: Path or id of the page that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a build.

    Attributes:
        pages: Every enumerated id mapped to its rendered content, or to a
            NotFoundPage when resolving it failed. Keys follow enumeration
            order (newest first).
        failures: Failed ids mapped to the reason.
        output_dir: Where the site was written, if it was.
    """

    pages: dict[str, Page]
    failures: dict[str, str] = field(default_factory=dict)
    output_dir: Path | None = None

    @property
    def rendered(self) -> list[RenderedContent]:
        return [page for page in self.pages.values() if isinstance(page, RenderedContent)]

    @property
    def ok(self) -> bool:
        return not self.failures


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is invalid or holds an unsupported value.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{config_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping")
        config.update(loaded)
    return validate_config(config)


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Check enumerated and numeric settings.

    Raises:
        ConfigError: On the first invalid value.
    """
    if config["fallback"] not in (FALLBACK_OFF, FALLBACK_LAZY):
        raise ConfigError(f"fallback must be 'off' or 'lazy', got {config['fallback']!r}")
    if config["mode"] not in (MODE_PRODUCTION, MODE_DEVELOPMENT):
        raise ConfigError(
            f"mode must be 'production' or 'development', got {config['mode']!r}"
        )
    for key in ("concurrency", "retry_attempts"):
        value = config[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigError(f"{key} must be a positive integer, got {value!r}")
    return config


class BuildOrchestrator:
    """Builds every enumerated post and answers request-time lookups.

    Attributes:
        store: Shared read-only content store.
        resolver: Resolves one id to rendered content.
        enumerator: Produces the ids to build.
        fallback: ``off`` or ``lazy``; policy for ids unknown at build time.
        mode: ``production`` (enumerate once per build) or ``development``
            (enumerate and resolve on every request).
        concurrency: Maximum number of concurrent resolutions.
    """

    def __init__(
        self,
        store: ContentStore,
        resolver: ContentResolver | None = None,
        enumerator: PathEnumerator | None = None,
        fallback: str = FALLBACK_OFF,
        mode: str = MODE_PRODUCTION,
        concurrency: int = 4,
    ):
        if fallback not in (FALLBACK_OFF, FALLBACK_LAZY):
            raise ConfigError(f"Unknown fallback policy: {fallback!r}")
        if mode not in (MODE_PRODUCTION, MODE_DEVELOPMENT):
            raise ConfigError(f"Unknown mode: {mode!r}")
        self.store = store
        self.resolver = resolver or ContentResolver(store)
        self.enumerator = enumerator or PathEnumerator(store)
        self.fallback = fallback
        self.mode = mode
        self.concurrency = max(1, concurrency)
        self._built: dict[str, Page] | None = None
        self._lazy_cache: dict[str, RenderedContent] = {}
        self._cache_lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._id_locks: dict[str, threading.Lock] = {}

    def build(self) -> BuildResult:
        """Resolve every enumerated id.

        Returns:
            BuildResult whose keys are exactly the enumerated ids.

        Raises:
            StoreUnavailable: If the store cannot be listed.
        """
        paths = self.enumerator.enumerate()
        pages: dict[str, Page] = {path.id: NotFoundPage(path.id) for path in paths}
        failures: dict[str, str] = {}
        logger.info("Building %d pages", len(paths))

        executor = ThreadPoolExecutor(max_workers=self.concurrency)
        try:
            future_to_id: dict[Future, str] = {
                executor.submit(self.resolver.resolve, path.id): path.id for path in paths
            }
            for future in as_completed(future_to_id):
                content_id = future_to_id[future]
                try:
                    pages[content_id] = future.result()
                except PAGE_ERRORS as exc:
                    logger.error("Failed to build %s: %s", content_id, exc)
                    failures[content_id] = str(exc)
                    pages[content_id] = NotFoundPage(content_id, reason=str(exc))
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        with self._cache_lock:
            self._built = pages
            self._lazy_cache.clear()
            self._id_locks.clear()
        logger.info("Built %d pages (%d failed)", len(pages) - len(failures), len(failures))
        return BuildResult(pages=pages, failures=failures)

    def request(self, content_id: str) -> Page:
        """Look up one id at request time.

        Returns:
            The rendered content, or a NotFoundPage.

        Raises:
            StoreUnavailable: If the store cannot be read.
        """
        if self.mode == MODE_DEVELOPMENT:
            known = {path.id for path in self.enumerator.enumerate()}
            if content_id in known:
                return self._resolve_page(content_id)
            return self._fallback(content_id)

        page = self._ensure_built().get(content_id)
        if page is not None:
            return page
        return self._fallback(content_id)

    def listing(self) -> list[RenderedContent]:
        """Rendered posts in enumeration order (newest first), for index pages."""
        if self.mode == MODE_DEVELOPMENT:
            pages = [self._resolve_page(path.id) for path in self.enumerator.enumerate()]
        else:
            pages = list(self._ensure_built().values())
        return [page for page in pages if isinstance(page, RenderedContent)]

    def _ensure_built(self) -> dict[str, Page]:
        with self._build_lock:
            if self._built is None:
                self.build()
            return self._built

    def _resolve_page(self, content_id: str) -> Page:
        try:
            return self.resolver.resolve(content_id)
        except NotFound:
            return NotFoundPage(content_id)
        except (RenderFailure, MalformedContent) as exc:
            logger.error("Failed to resolve %s: %s", content_id, exc)
            return NotFoundPage(content_id, reason=str(exc))

    def _fallback(self, content_id: str) -> Page:
        if self.fallback == FALLBACK_OFF:
            return NotFoundPage(content_id)

        with self._cache_lock:
            cached = self._lazy_cache.get(content_id)
            if cached is not None:
                return cached
            id_lock = self._id_locks.setdefault(content_id, threading.Lock())

        with id_lock:
            cached = self._lazy_cache.get(content_id)
            if cached is not None:
                return cached
            try:
                page = self._resolve_page(content_id)
                if isinstance(page, RenderedContent):
                    logger.info("Generated %s on demand", content_id)
                    with self._cache_lock:
                        self._lazy_cache[content_id] = page
                return page
            finally:
                # Later callers see the cache entry before creating a new lock.
                with self._cache_lock:
                    if self._id_locks.get(content_id) is id_lock:
                        del self._id_locks[content_id]


def create_orchestrator(
    project_root: Path,
    config: dict[str, Any] | None = None,
    include_drafts: bool = False,
) -> BuildOrchestrator:
    """Build the default pipeline for a project directory."""
    config = config or load_config(project_root)
    store = FileContentStore(project_root / config["content_dir"], include_drafts=include_drafts)
    resolver = ContentResolver(
        store,
        renderer=MarkdownRenderer(sanitize=bool(config["sanitize"])),
        retry_attempts=config["retry_attempts"],
        retry_wait=float(config["retry_wait"]),
    )
    return BuildOrchestrator(
        store,
        resolver=resolver,
        fallback=config["fallback"],
        mode=config["mode"],
        concurrency=config["concurrency"],
    )


def create_routes(config: dict[str, Any], orchestrator: BuildOrchestrator) -> RouteTable:
    routes = RouteTable()
    routes.register(config["route"], orchestrator.request)
    return routes


def create_engine(project_root: Path, config: dict[str, Any], routes: RouteTable) -> TemplateEngine:
    return TemplateEngine(
        project_root / config["templates_dir"],
        data={"title": config["title"]},
        url_for=lambda content_id: routes.url_for(config["route"], content_id),
        date_format=config["date_format"],
    )


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the project and write it to the output directory.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft posts (starting with _).
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Optional path to write the build output instead
            of config output_dir.

    Returns:
        BuildResult for every enumerated post.

    Raises:
        StoreUnavailable: If the content directory cannot be read.
        BuildError: If a template fails to render.
    """
    config = load_config(project_root)
    output_dir = output_dir_override or (project_root / config["output_dir"])
    orchestrator = create_orchestrator(project_root, config, include_drafts)
    result = orchestrator.build()

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
    routes = create_routes(config, orchestrator)
    engine = create_engine(project_root, config, routes)
    write_site(result, output_dir, engine)
    result.output_dir = output_dir
    return result


def write_site(result: BuildResult, output_dir: Path, engine: TemplateEngine) -> None:
    """Write every rendered page, the index and the 404 page.

    Raises:
        BuildError: If a template fails to render.
    """
    posts = result.rendered
    for post in posts:
        try:
            rendered = engine.render_post(post)
        except TemplateError as exc:
            raise BuildError(post.id, f"Template error: {exc}", exc) from exc
        _write_page(output_dir, engine.url_for(post.id), rendered)
    try:
        index = engine.render_index(posts)
        not_found = engine.render_not_found()
    except TemplateError as exc:
        raise BuildError("index", f"Template error: {exc}", exc) from exc
    _write_page(output_dir, "/", index)
    (output_dir / "404.html").write_text(not_found, encoding="utf-8")
    logger.info("Wrote %d pages to %s", len(posts), output_dir)


def _write_page(output_dir: Path, url: str, rendered: str) -> None:
    """Write a rendered page as ``<url>/index.html`` under the output directory."""
    target_dir = (output_dir / unquote(url).strip("/")).resolve()
    if not target_dir.is_relative_to(output_dir.resolve()):
        raise BuildError(url, "Page URL escapes the output directory")
    target_dir.mkdir(parents=True, exist_ok=True)
    with open(target_dir / "index.html", "w", encoding="utf-8") as f:
        f.write(rendered)
