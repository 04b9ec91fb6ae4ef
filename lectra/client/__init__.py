"""
Client module - API client, query cache and mutations.

Factory function wiring one shared cache between reads and writes.
"""

from dataclasses import dataclass

from lectra.client.api_client import APIClient, APIError
from lectra.client.mutations import Notifier, TranscriptionMutations
from lectra.client.queries import TranscriptionQueries
from lectra.client.query_cache import QueryCache

__all__ = ["APIClient", "APIError", "LectraClient", "create_client"]


@dataclass
class LectraClient:
    api: APIClient
    cache: QueryCache
    queries: TranscriptionQueries
    mutations: TranscriptionMutations

    def close(self) -> None:
        self.api.close()


def create_client(settings=None, notifier: Notifier | None = None) -> LectraClient:
    """Build an API client, cache, queries and mutations from settings.

    Args:
        settings: Optional Settings instance (defaults to get_settings()).
        notifier: Receives user-facing mutation outcomes (logging by default).
    """
    if settings is None:
        from lectra.core.config import get_settings

        settings = get_settings()

    api = APIClient(base_url=settings.api_base_url)
    cache = QueryCache(stale_seconds=settings.query_stale_seconds)
    return LectraClient(
        api=api,
        cache=cache,
        queries=TranscriptionQueries(api, cache, retries=settings.query_retries),
        mutations=TranscriptionMutations(
            api, cache, notifier=notifier, retries=settings.mutation_retries
        ),
    )
