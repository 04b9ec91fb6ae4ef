"""Cached read queries over the Lectra API."""

from lectra.client import query_keys
from lectra.client.api_client import APIClient
from lectra.client.pagination import InfiniteHistory
from lectra.client.query_cache import QueryCache
from lectra.client.retry import call_with_retries

HISTORY_STALE_SECONDS = 120.0
DETAIL_STALE_SECONDS = 300.0
HEALTH_STALE_SECONDS = 60.0
LANGUAGES_STALE_SECONDS = 24 * 3600.0


class TranscriptionQueries:
    """Read side of the client: every call goes through the query cache."""

    def __init__(self, api: APIClient, cache: QueryCache, retries: int = 2) -> None:
        self._api = api
        self._cache = cache
        self._retries = retries

    def _fetch(self, key, fn, stale_seconds: float):
        return self._cache.fetch(
            key, lambda: call_with_retries(fn, self._retries), stale_seconds=stale_seconds
        )

    def history(self, limit: int = 20, offset: int = 0) -> dict:
        return self._fetch(
            query_keys.list_page(limit, offset),
            lambda: self._api.get_history(limit, offset),
            HISTORY_STALE_SECONDS,
        )

    def search(self, term: str, limit: int = 20, offset: int = 0) -> dict:
        return self._fetch(
            query_keys.search(term, limit, offset),
            lambda: self._api.search(term, limit, offset),
            HISTORY_STALE_SECONDS,
        )

    def detail(self, transcription_id: str) -> dict:
        return self._fetch(
            query_keys.detail(transcription_id),
            lambda: self._api.get_transcription(transcription_id),
            DETAIL_STALE_SECONDS,
        )

    def health(self) -> dict:
        return self._fetch(query_keys.HEALTH, self._api.health_check, HEALTH_STALE_SECONDS)

    def languages(self) -> list[dict]:
        return self._fetch(query_keys.LANGUAGES, self._api.list_languages, LANGUAGES_STALE_SECONDS)

    def infinite_history(self, limit: int = 20) -> InfiniteHistory:
        return InfiniteHistory(
            lambda lim, off: call_with_retries(
                lambda: self._api.get_history(lim, off), self._retries
            ),
            self._cache,
            limit=limit,
        )
