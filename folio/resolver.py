"""Content resolution for Folio.

The resolver turns one content id into a RenderedContent: it fetches the
item from the store and applies the markdown transform to its body.

- NotFound from the store propagates and is never retried.
- StoreUnavailable from the store is retried with exponential backoff,
  then propagates.
- Any error raised by the transform surfaces as RenderFailure for that id.
"""

from __future__ import annotations

import logging

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .content import ContentItem, RenderedContent
from .errors import RenderFailure, StoreUnavailable
from .protocols import ContentRenderer, ContentStore
from .renderers import MarkdownRenderer

logger = logging.getLogger(__name__)


class ContentResolver:
    """Resolves ids to rendered content.

    Attributes:
        store: Content store items are fetched from.
        renderer: Markdown transform.
        retry_attempts: Total attempts for a transient store failure.
        retry_wait: Initial backoff in seconds, doubled on each retry.
        retry_max_wait: Upper bound for a single backoff.
    """

    def __init__(
        self,
        store: ContentStore,
        renderer: ContentRenderer | None = None,
        retry_attempts: int = 3,
        retry_wait: float = 0.1,
        retry_max_wait: float = 2.0,
    ):
        self.store = store
        self.renderer = renderer or MarkdownRenderer()
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait = retry_wait
        self.retry_max_wait = retry_max_wait

    def resolve(self, content_id: str) -> RenderedContent:
        """Fetch and render one item.

        Args:
            content_id: Id of the item.

        Returns:
            The rendered content.

        Raises:
            NotFound: If the store has no such id.
            StoreUnavailable: If the store stays unreadable after retries.
            MalformedContent: If the item cannot be parsed.
            RenderFailure: If the markdown transform fails.
        """
        item = self._fetch(content_id)
        try:
            html, toc = self.renderer.render(item.raw_body)
        except Exception as exc:
            raise RenderFailure(
                content_id, f"{type(exc).__name__}: {exc}", exc
            ) from exc
        return RenderedContent(
            id=item.id,
            title=item.title,
            date=item.date,
            html=html,
            toc=tuple(toc),
        )

    def _fetch(self, content_id: str) -> ContentItem:
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=self.retry_max_wait),
            retry=retry_if_exception_type(StoreUnavailable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(self.store.get_by_id, content_id)
