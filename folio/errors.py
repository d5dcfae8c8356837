"""Error taxonomy for Folio.

Content stores and the resolver raise these typed failures; the build
orchestrator catches the per-id ones and aggregates them.

- StoreUnavailable: the backing source cannot be read.
- NotFound: no content item matches the requested id.
- MalformedContent: an item exists but its source cannot be parsed.
- RenderFailure: the markdown transform failed for one item.
- ConfigError: invalid value in folio.yaml.
"""

from __future__ import annotations


class FolioError(Exception):
    """Base class for all Folio errors."""


class StoreUnavailable(FolioError):
    """The backing content source is unreachable or unreadable.

    Attributes:
        source: Description of the source (path, URL, key).
        original_error: The underlying exception, if any.
    """

    def __init__(self, source: str, original_error: Exception | None = None):
        self.source = source
        self.original_error = original_error
        message = f"Content store unavailable: {source}"
        if original_error is not None:
            message = f"{message} ({original_error})"
        super().__init__(message)


class NotFound(FolioError):
    """No content item matches the requested id."""

    def __init__(self, content_id: str):
        self.content_id = content_id
        super().__init__(f"No content with id {content_id!r}")


class MalformedContent(FolioError):
    """A content record exists but cannot be parsed.

    Attributes:
        source: Path or key of the record.
        message: Human-readable reason.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class RenderFailure(FolioError):
    """The markdown transform failed for a single content item.

    Attributes:
        content_id: Id of the item being rendered.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        content_id: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.content_id = content_id
        self.message = message
        self.original_error = original_error
        super().__init__(f"{content_id}: {message}")


class ConfigError(FolioError):
    """Invalid configuration value."""
