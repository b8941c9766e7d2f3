"""List/Pagination Cursor.

Accumulates paged results for one filter key into a single growing list,
de-duplicated by id and kept in server arrival order.

``has_more`` is inferred from page size: a short page means the end. When the
last page is exactly ``page_size`` long the cursor reports more, and the next
load comes back empty and flips it off. This is a known approximation.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Generic, Hashable, Optional, Sequence, TypeVar

from devconnect import config
from devconnect.errors import GATEWAY_ERRORS, classify

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[Hashable, int, int], Awaitable[Sequence[T]]]


def _default_key(item) -> Hashable:
    return item.id


class PaginatedCursor(Generic[T]):
    """Cursor over ``fetch(filter_key, page, limit)``.

    ``page`` is the next page to request (1-based).
    """

    def __init__(
        self,
        fetch: PageFetcher,
        filter_key: Hashable = None,
        page_size: Optional[int] = None,
        key: Callable[[T], Hashable] = _default_key,
    ):
        self._fetch = fetch
        self._key = key
        self.page_size = page_size or config.PAGE_SIZE
        self.filter_key: Hashable = None
        self.items: list[T] = []
        self.page = 1
        self.has_more = True
        self.loading = False
        self._seen: set[Hashable] = set()
        self._generation = 0
        self.reset(filter_key)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def reset(self, filter_key: Hashable = None) -> None:
        """Start over for ``filter_key``. Any in-flight load is orphaned."""
        self._generation += 1
        self.filter_key = filter_key
        self.items = []
        self._seen = set()
        self.page = 1
        self.has_more = True
        self.loading = False

    async def load_next(self) -> list[T]:
        """Fetch the next page and append unseen items.

        Returns:
            Items newly added by this call; empty if nothing was loaded
        """
        if not self.has_more or self.loading:
            logger.debug(f"load_next skipped for {self.filter_key!r} "
                         f"(has_more={self.has_more}, loading={self.loading})")
            return []

        generation = self._generation
        filter_key, page = self.filter_key, self.page
        self.loading = True
        try:
            batch = await self._fetch(filter_key, page, self.page_size)
        except GATEWAY_ERRORS as e:
            raise classify(e) from e
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug(f"Discarded page {page} for stale filter {filter_key!r}")
            return []

        added = []
        for item in batch:
            item_id = self._key(item)
            if item_id in self._seen:
                continue
            self._seen.add(item_id)
            added.append(item)

        self.items = self.items + added
        self.page = page + 1
        self.has_more = len(batch) >= self.page_size
        return added

    async def load_all(self, max_pages: Optional[int] = None) -> list[T]:
        """Keep loading until the cursor runs out (or ``max_pages`` loads)."""
        loaded = 0
        while self.has_more and not self.loading and (max_pages is None or loaded < max_pages):
            await self.load_next()
            loaded += 1
        return self.items
