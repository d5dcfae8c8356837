"""Template rendering engine for Folio.

This module uses Jinja2 to wrap rendered posts in a page shell. Templates
are looked up in the project's templates directory first, then in the
built-in defaults, so a project can override any of ``post.html.jinja``,
``index.html.jinja`` and ``404.html.jinja``.

Templates receive:
- data: Global site data (title).
- post / posts: RenderedContent objects.
- content: The post HTML, marked safe.
- url_for(id): URL of a post.
- the ``format_date`` filter and the ``pygments_css`` global.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .content import RenderedContent
from .renderers import pygments_css
from .utils import DISPLAY_DATE_FORMAT, format_date

DEFAULT_TEMPLATES = {
    "base.html.jinja": """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{% block title %}{{ data.title }}{% endblock %}</title>
  <style>{{ pygments_css() }}</style>
</head>
<body>
  <main>{% block content %}{% endblock %}</main>
</body>
</html>
""",
    "post.html.jinja": """{% extends "base.html.jinja" %}
{% block title %}{{ post.title }}{% endblock %}
{% block content %}
<article>
  <h1>{{ post.title }}</h1>
  <div><time datetime="{{ post.date }}">{{ post.date | format_date }}</time></div>
  {{ content }}
</article>
<p><a href="/">Back to home</a></p>
{% endblock %}
""",
    "index.html.jinja": """{% extends "base.html.jinja" %}
{% block content %}
<section>
  <h2>Blog</h2>
  <ul>
  {% for post in posts %}
    <li>
      <a href="{{ url_for(post.id) }}">{{ post.title }}</a><br>
      <small><time datetime="{{ post.date }}">{{ post.date | format_date }}</time></small>
    </li>
  {% endfor %}
  </ul>
</section>
{% endblock %}
""",
    "404.html.jinja": """{% extends "base.html.jinja" %}
{% block title %}Page not found{% endblock %}
{% block content %}
<h1>404 - Page not found</h1>
<p><a href="/">Back to home</a></p>
{% endblock %}
""",
}


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        templates_dir: Directory with project template overrides.
        data: Global site data.
        env: Jinja2 environment.
        date_format: strftime format used by the ``format_date`` filter.
    """

    def __init__(
        self,
        templates_dir: Path,
        data: dict[str, Any] | None = None,
        url_for: Callable[[str], str] | None = None,
        date_format: str = DISPLAY_DATE_FORMAT,
    ):
        self.templates_dir = templates_dir
        self.data = data or {}
        self.date_format = date_format
        self._url_for = url_for or (lambda content_id: f"/posts/{content_id}/")
        self.env = Environment(
            loader=ChoiceLoader(
                [FileSystemLoader(str(templates_dir)), DictLoader(DEFAULT_TEMPLATES)]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self.env.filters["format_date"] = self._format_date
        self.env.globals["data"] = self.data
        self.env.globals["url_for"] = self.url_for
        self.env.globals["pygments_css"] = lambda: Markup(pygments_css())

    def _format_date(self, value: str, fmt: str | None = None) -> str:
        return format_date(value, fmt or self.date_format)

    def url_for(self, content_id: str) -> str:
        return self._url_for(content_id)

    def render_post(self, post: RenderedContent) -> str:
        """Render a single post page.

        Args:
            post: The rendered post.

        Returns:
            Full HTML page.
        """
        template = self.env.get_template("post.html.jinja")
        return template.render(post=post, content=Markup(post.html))

    def render_index(self, posts: Iterable[RenderedContent]) -> str:
        """Render the home page listing posts in the given order."""
        template = self.env.get_template("index.html.jinja")
        return template.render(posts=list(posts))

    def render_not_found(self) -> str:
        return self.env.get_template("404.html.jinja").render()
