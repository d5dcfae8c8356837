"""Content models and stores for Folio.

This module defines the records that flow through the pipeline and the
read-only content stores that produce them.

Key classes:
- ContentItem: A parsed post (metadata plus raw markdown body).
- RenderedContent: A post whose body has been rendered to HTML.
- PathDescriptor: One addressable id produced at build time.
- NotFoundPage: Marker returned for unknown or failed ids.
- FileContentStore: Reads posts from a flat directory of markdown files.
- MemoryContentStore: Serves posts from an in-memory mapping.

Stores never mutate their source. ``list_all`` skips malformed entries with
a logged warning; ``get_by_id`` raises for them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from .errors import MalformedContent, NotFound, StoreUnavailable
from .extractors import CompositeMetadataExtractor, default_metadata_extractor
from .renderers import Heading
from .utils import DISPLAY_DATE_FORMAT, format_date, is_draft, is_markdown, parse_iso_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceRecord:
    """A raw record read from a backing source, before parsing.

    Attributes:
        key: Stable key of the record; becomes the content id.
        name: Filename (or synthetic filename) used for title fallback.
        source: Human-readable location, used in log and error messages.
        text: Full record text including front matter.
        modified: Last modification time, when the source knows it.
    """

    key: str
    name: str
    source: str
    text: str
    modified: datetime | None = None


@dataclass(frozen=True)
class ContentItem:
    """A parsed post.

    Attributes:
        id: Unique id derived from the source filename or key.
        title: Post title.
        date: ISO-8601 publication date.
        raw_body: Markdown body without front matter. Empty for items
            returned by ``list_all``.
        source: Where the item was read from.
        frontmatter: Full parsed front matter.
    """

    id: str
    title: str
    date: str
    raw_body: str = ""
    source: str = ""
    frontmatter: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def published(self) -> datetime:
        """Publication date as a naive datetime, for sorting."""
        return parse_iso_date(self.date)

    def summary(self) -> ContentItem:
        """Return a copy of this item without its body."""
        return replace(self, raw_body="")


@dataclass(frozen=True)
class RenderedContent:
    """A post with its body rendered to HTML.

    Attributes:
        id: Content id.
        title: Post title.
        date: ISO-8601 publication date.
        html: Rendered body.
        toc: Headings found while rendering, in document order.
    """

    id: str
    title: str
    date: str
    html: str
    toc: tuple[Heading, ...] = ()

    def formatted_date(self, fmt: str = DISPLAY_DATE_FORMAT) -> str:
        return format_date(self.date, fmt)


@dataclass(frozen=True)
class PathDescriptor:
    id: str


@dataclass(frozen=True)
class NotFoundPage:
    """Marker for an id with no page.

    Attributes:
        id: The requested id.
        reason: Why no page exists (None for plain unknown ids).
    """

    id: str
    reason: str | None = None


class DefaultItemBuilder:
    """Builds ContentItem objects from source records.

    Attributes:
        metadata_extractor: Composite metadata extractor.
    """

    def __init__(self, metadata_extractor: CompositeMetadataExtractor | None = None):
        self.metadata_extractor = metadata_extractor or default_metadata_extractor

    def build(self, record: SourceRecord) -> ContentItem:
        """Build a ContentItem from a source record.

        Raises:
            MalformedContent: If the record cannot be parsed.
        """
        metadata = self.metadata_extractor.extract(record)
        return ContentItem(
            id=record.key,
            title=metadata["title"],
            date=metadata["date"],
            raw_body=metadata["body"],
            source=record.source,
            frontmatter=metadata["frontmatter"],
        )


class _RecordStore:
    """Shared listing and lookup logic for content stores.

    Subclasses provide ``_iter_entries`` (key and source handle pairs in
    source-enumeration order) and ``_read_record`` (load one record).
    """

    def __init__(self, item_builder: DefaultItemBuilder | None = None):
        self._item_builder = item_builder or DefaultItemBuilder()

    def _iter_entries(self) -> Iterator[tuple[str, Any]]:
        raise NotImplementedError

    def _read_record(self, key: str, handle: Any) -> SourceRecord:
        raise NotImplementedError

    def _find_entry(self, key: str) -> Any:
        for entry_key, handle in self._iter_entries():
            if entry_key == key:
                return handle
        raise NotFound(key)

    def list_all(self) -> list[ContentItem]:
        """Return every item's metadata sorted by date, newest first.

        Items with equal dates keep their source-enumeration order.

        Raises:
            StoreUnavailable: If the backing source cannot be read.
        """
        items: list[ContentItem] = []
        seen: set[str] = set()
        for key, handle in self._iter_entries():
            if key in seen:
                logger.warning("Skipping duplicate content id %r", key)
                continue
            seen.add(key)
            try:
                item = self._item_builder.build(self._read_record(key, handle))
            except MalformedContent as exc:
                logger.warning("Skipping malformed content %s: %s", exc.source, exc.message)
                continue
            except NotFound:
                # Removed between enumeration and read.
                logger.debug("Content %r vanished while listing", key)
                continue
            items.append(item.summary())
        return sorted(items, key=lambda item: item.published, reverse=True)

    def get_by_id(self, content_id: str) -> ContentItem:
        """Return the full item for an id.

        Raises:
            NotFound: If no item matches.
            StoreUnavailable: If the backing source cannot be read.
            MalformedContent: If the item exists but cannot be parsed.
        """
        handle = self._find_entry(content_id)
        return self._item_builder.build(self._read_record(content_id, handle))


class FileContentLoader:
    """Discovers markdown files in a flat content directory.

    Attributes:
        content_dir: Directory containing the posts.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """List markdown files in sorted filename order.

        Args:
            include_drafts: Whether to include files starting with ``_``.

        Returns:
            List of paths to markdown files.

        Raises:
            StoreUnavailable: If the directory is missing or unreadable.
        """
        if not self.content_dir.is_dir():
            raise StoreUnavailable(str(self.content_dir))
        try:
            entries = sorted(self.content_dir.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise StoreUnavailable(str(self.content_dir), exc) from exc
        files: list[Path] = []
        for path in entries:
            if not path.is_file() or not is_markdown(path):
                continue
            if is_draft(path) and not include_drafts:
                continue
            files.append(path)
        return files


class FileContentStore(_RecordStore):
    """Content store backed by a directory of markdown files.

    Each ``<id>.md`` file is one post; the id is the filename stem.

    Attributes:
        content_dir: Directory containing the posts.
        include_drafts: Whether ``_``-prefixed files are exposed.
    """

    def __init__(
        self,
        content_dir: Path,
        include_drafts: bool = False,
        content_loader: FileContentLoader | None = None,
        item_builder: DefaultItemBuilder | None = None,
    ):
        super().__init__(item_builder)
        self.content_dir = content_dir
        self.include_drafts = include_drafts
        self._content_loader = content_loader or FileContentLoader(content_dir)

    def _iter_entries(self) -> Iterator[tuple[str, Path]]:
        for path in self._content_loader.iter_files(self.include_drafts):
            yield path.stem, path

    def _read_record(self, key: str, path: Path) -> SourceRecord:
        try:
            raw = path.read_bytes()
            modified = datetime.fromtimestamp(path.stat().st_mtime)
        except FileNotFoundError as exc:
            raise NotFound(key) from exc
        except OSError as exc:
            raise StoreUnavailable(str(path), exc) from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedContent(str(path), f"Not valid UTF-8: {exc}") from exc
        return SourceRecord(
            key=key, name=path.name, source=str(path), text=text, modified=modified
        )


class MemoryContentStore(_RecordStore):
    """Content store serving posts from a mapping of id to markdown text.

    Stands in for API or database backends; enumeration order is the
    mapping's insertion order.
    """

    def __init__(
        self,
        records: Mapping[str, str],
        item_builder: DefaultItemBuilder | None = None,
    ):
        super().__init__(item_builder)
        self._records = dict(records)

    def _iter_entries(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._records.items()))

    def _find_entry(self, key: str) -> str:
        try:
            return self._records[key]
        except KeyError:
            raise NotFound(key) from None

    def _read_record(self, key: str, text: str) -> SourceRecord:
        return SourceRecord(key=key, name=f"{key}.md", source=f"memory:{key}", text=text)
