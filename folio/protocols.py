"""Protocol definitions for Folio.

This module defines the interfaces (protocols) shared by Folio's
components. The path enumerator, resolver and build orchestrator depend on
these abstractions and receive concrete implementations at construction
time, so any backing source (directory, API, database) can stand in for
the file store.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import ContentItem, SourceRecord
    from .renderers import Heading


@runtime_checkable
class ContentStore(Protocol):
    """Read-only source of content items."""

    @abstractmethod
    def list_all(self) -> list[ContentItem]:
        """Return every item's metadata, sorted by date descending.

        Raises:
            StoreUnavailable: If the backing source cannot be read.
        """
        ...

    @abstractmethod
    def get_by_id(self, content_id: str) -> ContentItem:
        """Return the item with the given id, body included.

        Raises:
            NotFound: If no item matches.
            StoreUnavailable: If the backing source cannot be read.
        """
        ...


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for the markdown-to-HTML transform."""

    @abstractmethod
    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render content to HTML.

        Args:
            content: Source content to render.

        Returns:
            Tuple of (rendered HTML, list of headings).
        """
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting one kind of metadata from a record."""

    @abstractmethod
    def extract(
        self, record: SourceRecord, frontmatter: dict[str, Any], body: str
    ) -> dict[str, Any]:
        """Extract metadata.

        Args:
            record: Raw source record.
            frontmatter: Parsed front matter.
            body: Markdown body with the front matter removed.

        Returns:
            Dictionary of extracted metadata.
        """
        ...
