"""Explicit route registration for Folio.

Dynamic routes are declared in code as a pattern with a single ``{id}``
placeholder, e.g. ``/posts/{id}/``, bound to a handler that receives the
id. Nothing is inferred from file names.

Key classes:
- Route: A pattern bound to a handler.
- RouteTable: Ordered collection of routes with matching and URL building.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any
from urllib.parse import quote, unquote

ID_PLACEHOLDER = "{id}"


class Route:
    """A URL pattern with one ``{id}`` segment bound to a handler.

    Attributes:
        pattern: The declared pattern.
        handler: Callable receiving the matched id.
    """

    def __init__(self, pattern: str, handler: Callable[[str], Any]):
        if pattern.count(ID_PLACEHOLDER) != 1:
            raise ValueError(f"Route pattern must contain exactly one {ID_PLACEHOLDER}: {pattern!r}")
        if not pattern.startswith("/"):
            raise ValueError(f"Route pattern must start with '/': {pattern!r}")
        self.pattern = pattern
        self.handler = handler
        prefix, suffix = pattern.split(ID_PLACEHOLDER)
        self._regex = re.compile(f"^{re.escape(prefix)}(?P<id>[^/]+){re.escape(suffix)}$")
        self._prefix = prefix
        self._suffix = suffix

    def match(self, path: str) -> str | None:
        """Return the id captured from a request path, or None."""
        found = self._regex.match(path)
        if not found:
            return None
        return unquote(found.group("id"))

    def url_for(self, content_id: str) -> str:
        return f"{self._prefix}{quote(content_id)}{self._suffix}"

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Route({self.pattern!r})"


class RouteTable:
    """Ordered routes; the first matching route wins."""

    def __init__(self):
        self._routes: list[Route] = []

    def register(self, pattern: str, handler: Callable[[str], Any]) -> Route:
        """Register a handler for a pattern.

        Args:
            pattern: Pattern such as ``/posts/{id}/``.
            handler: Callable receiving the matched id.

        Returns:
            The registered Route.

        Raises:
            ValueError: If the pattern is invalid or already registered.
        """
        if any(route.pattern == pattern for route in self._routes):
            raise ValueError(f"Route already registered: {pattern!r}")
        route = Route(pattern, handler)
        self._routes.append(route)
        return route

    def match(self, path: str) -> tuple[Route, str] | None:
        """Find the route and id for a request path.

        A missing trailing slash is tolerated for patterns ending in ``/``.
        """
        candidates = [path]
        if not path.endswith("/"):
            candidates.append(f"{path}/")
        for candidate in candidates:
            for route in self._routes:
                content_id = route.match(candidate)
                if content_id is not None:
                    return route, content_id
        return None

    def dispatch(self, path: str) -> Any:
        """Call the handler for a path.

        Raises:
            LookupError: If no route matches.
        """
        found = self.match(path)
        if found is None:
            raise LookupError(path)
        route, content_id = found
        return route.handler(content_id)

    def url_for(self, pattern: str, content_id: str) -> str:
        for route in self._routes:
            if route.pattern == pattern:
                return route.url_for(content_id)
        raise KeyError(pattern)

    def __iter__(self):
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
