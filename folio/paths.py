"""Path enumeration for Folio.

The enumerator produces the full set of addressable ids for dynamic
content. It reflects exactly the ids the content store exposes, with no
filtering.
"""

from __future__ import annotations

import logging

from .content import PathDescriptor
from .protocols import ContentStore

logger = logging.getLogger(__name__)


class PathEnumerator:
    """Enumerates the ids a content store currently exposes.

    Attributes:
        store: The content store to enumerate.
    """

    def __init__(self, store: ContentStore):
        self.store = store

    def enumerate(self) -> list[PathDescriptor]:
        """Return one PathDescriptor per item, in ``list_all`` order.

        Raises:
            StoreUnavailable: If the store cannot be listed.
        """
        paths = [PathDescriptor(id=item.id) for item in self.store.list_all()]
        logger.debug("Enumerated %d paths", len(paths))
        return paths
