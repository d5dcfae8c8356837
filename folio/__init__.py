"""Folio static content pipeline.

This package is the core of a small static blog generator. It reads
markdown posts with YAML front matter, enumerates every post id at build
time, resolves each id into rendered HTML plus metadata, and writes pages
through Jinja2 templates.

Pipeline, leaves first:
- content: Content stores that read and parse posts.
- paths: Enumerates the ids a store exposes.
- resolver: Renders one id into RenderedContent.
- build: Builds every id with bounded concurrency and applies the
  fallback policy for ids unknown at build time.

The CLI module provides commands for building, inspecting and previewing
a site.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
