"""Markdown rendering for Folio.

This module contains the ContentRenderer implementation that turns a
post's markdown body into an HTML fragment. Rendering is a pure function
of its input: a fresh mistune renderer is created for every call, so
heading ids and collected headings never leak between posts.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- Heading: A heading collected during rendering.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


@dataclass(frozen=True)
class Heading:
    """A heading extracted from markdown content.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """mistune renderer adding heading ids and Pygments highlighting.

    Attributes:
        headings: Headings collected during rendering, in document order.
    """

    def __init__(self, escape: bool = False):
        super().__init__(escape=escape)
        self.headings: list[Heading] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text) or "section"

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Attributes:
        sanitize: When True, raw HTML inside markdown is escaped instead of
            passed through.
    """

    source_type = "markdown"

    def __init__(self, sanitize: bool = False):
        self.sanitize = sanitize

    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        renderer = _HighlightRenderer(escape=self.sanitize)
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        html = markdown(content)
        return html, renderer.headings


def pygments_css(selector: str = ".highlight") -> str:
    """Return Pygments CSS rules for highlighted code blocks."""
    return HtmlFormatter().get_style_defs(selector)
