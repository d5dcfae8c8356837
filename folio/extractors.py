"""Metadata extractors for Folio.

This module contains implementations of the MetadataExtractor protocol.
Each extractor resolves one piece of post metadata from a source record,
its parsed front matter and its markdown body.

Key classes:
- TitleExtractor: Title from front matter, first heading or filename.
- DateExtractor: ISO date from front matter, filename prefix or mtime.
- CompositeMetadataExtractor: Parses front matter and runs the extractors.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING, Any

import yaml

from .errors import MalformedContent
from .utils import extract_date_from_name, normalize_date, titleize

if TYPE_CHECKING:
    from .content import SourceRecord

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)


def extract_frontmatter(text: str, source: str = "<string>") -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.
        source: Name of the record, used in error messages.

    Returns:
        Tuple of (front matter dict, remaining content). Content without a
        front matter block yields an empty dict and the text unchanged.

    Raises:
        MalformedContent: If the block is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except (yaml.YAMLError, ValueError) as exc:
        # Out-of-range timestamps (date: 2024-13-45) raise a plain ValueError.
        raise MalformedContent(source, f"Invalid front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedContent(source, "Front matter must be a mapping")
    return data, text[match.end() :]


class TitleExtractor:
    """Extracts the post title.

    Uses the ``title`` front matter key, then a level-1 heading
    (# Title) in the body, falling back to titleizing the filename.
    """

    def extract(
        self, record: SourceRecord, frontmatter: dict[str, Any], body: str
    ) -> dict[str, Any]:
        title = frontmatter.get("title")
        if title is not None:
            return {"title": str(title)}
        fence = None
        for line in body.splitlines():
            stripped = line.strip()
            marker = stripped[:3]
            if marker in ("```", "~~~"):
                if fence is None:
                    fence = marker
                elif marker == fence:
                    fence = None
                continue
            if fence is None and stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        return {"title": titleize(record.name)}


class DateExtractor:
    """Extracts the publication date as an ISO-8601 string.

    Looks for a ``date`` front matter key, then a YYYY-MM-DD filename
    prefix, then the record's modification time. A front matter date
    that cannot be parsed makes the record malformed.
    """

    def extract(
        self, record: SourceRecord, frontmatter: dict[str, Any], body: str
    ) -> dict[str, Any]:
        if "date" in frontmatter:
            try:
                return {"date": normalize_date(frontmatter["date"])}
            except ValueError as exc:
                raise MalformedContent(record.source, f"Invalid date: {exc}") from exc
        from_name = extract_date_from_name(record.key)
        if from_name is not None:
            return {"date": from_name.isoformat()}
        modified = record.modified or datetime.now()
        return {"date": modified.date().isoformat()}


class CompositeMetadataExtractor:
    """Parses front matter, then runs each extractor and merges results.

    Later extractors can override keys set by earlier ones.
    """

    def __init__(self, extractors: list | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: List of MetadataExtractor implementations.
                       If None, uses the title and date extractors.
        """
        if extractors is None:
            self._extractors = [TitleExtractor(), DateExtractor()]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        """Add an extractor to the composite."""
        self._extractors.append(extractor)

    def extract(self, record: SourceRecord) -> dict[str, Any]:
        """Extract all metadata from a source record.

        Args:
            record: The raw record read from a content store.

        Returns:
            Dictionary with ``frontmatter`` and ``body`` keys plus every key
            produced by the extractors.

        Raises:
            MalformedContent: If the record cannot be parsed.
        """
        frontmatter, body = extract_frontmatter(record.text, record.source)
        result: dict[str, Any] = {"frontmatter": frontmatter, "body": body}
        for extractor in self._extractors:
            result.update(extractor.extract(record, frontmatter, body))
        return result


default_metadata_extractor = CompositeMetadataExtractor()
