"""
Infinite (load-more) pagination over the history endpoint.

Pages are accumulated in the query cache under ``infinite(limit)``, so
invalidating ``lists()`` after a mutation marks the whole accumulated
history stale. A stale history is refetched from offset 0.
"""

import logging
from collections.abc import Callable, Iterator

from lectra.client import query_keys
from lectra.client.query_cache import QueryCache

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int, int], dict]


def next_page_offset(page: dict) -> int | None:
    """Offset of the page after *page*, or ``None`` when it was the last."""
    pagination = page.get("pagination") or {}
    if not pagination.get("hasMore"):
        return None
    return pagination["offset"] + pagination["limit"]


def flatten_pages(pages: list[dict]) -> list[dict]:
    return [item for page in pages for item in page.get("data", [])]


class InfiniteHistory:
    """Accumulates history pages, fetching the next one on demand."""

    def __init__(self, fetch_page: PageFetcher, cache: QueryCache, limit: int = 20) -> None:
        self._fetch_page = fetch_page
        self._cache = cache
        self.limit = limit
        self.key = query_keys.infinite(limit)

    @property
    def pages(self) -> list[dict]:
        return list(self._cache.get_data(self.key, {"pages": []})["pages"])

    @property
    def items(self) -> list[dict]:
        return flatten_pages(self.pages)

    @property
    def has_next_page(self) -> bool:
        pages = self.pages
        return not pages or next_page_offset(pages[-1]) is not None

    def fetch_next_page(self) -> dict | None:
        """Fetch and append the next page. Returns ``None`` once exhausted."""
        self._drop_if_invalidated()
        pages = self.pages
        if pages:
            offset = next_page_offset(pages[-1])
            if offset is None:
                return None
        else:
            offset = 0

        page = self._fetch_page(self.limit, offset)
        logger.debug("Fetched history page offset=%d (%d items)", offset, len(page.get("data", [])))
        self._cache.set_data(self.key, {"pages": pages + [page]})
        return page

    def iter_pages(self) -> Iterator[dict]:
        """Yield cached pages, then fetch further pages lazily until exhausted."""
        self._drop_if_invalidated()
        yield from self.pages
        while self.has_next_page:
            page = self.fetch_next_page()
            if page is None:
                return
            yield page

    def _drop_if_invalidated(self) -> None:
        entry = self._cache.get_entry(self.key)
        if entry is not None and entry.stale:
            logger.debug("History invalidated, restarting from offset 0")
            self.reset()

    def reset(self) -> None:
        self._cache.remove(self.key)
