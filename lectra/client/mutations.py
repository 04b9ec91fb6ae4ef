"""
Client-side mutations with cache reconciliation.

``update`` is optimistic: the cached detail entry is patched before the
request goes out and restored verbatim if the request fails. Every
successful mutation invalidates the list family so paginated and search
views refetch; ``delete`` also drops the detail entry.
"""

import copy
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from lectra.client import query_keys
from lectra.client.api_client import APIClient, APIError
from lectra.client.query_cache import CacheEntry, QueryCache
from lectra.client.query_keys import QueryKey
from lectra.client.retry import call_with_retries

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, title: str, message: str) -> None: ...

    def error(self, title: str, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes user-facing messages to the log."""

    def success(self, title: str, message: str) -> None:
        logger.info("%s: %s", title, message)

    def error(self, title: str, message: str) -> None:
        logger.error("%s: %s", title, message)


class OptimisticUpdate:
    """Speculative cache write that is later committed or reverted.

    The pre-mutation entry is deep-copied before the patch is applied, so
    ``revert`` restores data, timestamp and stale flag exactly as they were.
    """

    def __init__(self, cache: QueryCache, key: QueryKey, snapshot: CacheEntry | None) -> None:
        self._cache = cache
        self.key = key
        self.snapshot = snapshot
        self.state = "pending"

    @classmethod
    def begin(
        cls, cache: QueryCache, key: QueryKey, patch: Callable[[Any], Any]
    ) -> "OptimisticUpdate":
        """Snapshot *key* and apply *patch* to its cached data, if any."""
        entry = cache.get_entry(key)
        snapshot = copy.deepcopy(entry) if entry is not None else None
        if entry is not None:
            cache.set_data(key, patch)
        return cls(cache, key, snapshot)

    def commit(self, server_value: Any) -> None:
        self._finish("committed")
        self._cache.set_data(self.key, server_value)

    def revert(self) -> None:
        self._finish("reverted")
        if self.snapshot is None:
            self._cache.remove(self.key)
        else:
            self._cache.put_entry(self.snapshot)

    def _finish(self, state: str) -> None:
        if self.state != "pending":
            raise RuntimeError(f"Optimistic update already {self.state}")
        self.state = state


def _patch_detail(fields: dict[str, Any]) -> Callable[[Any], Any]:
    now = datetime.now(UTC).isoformat()

    def patch(old: Any) -> Any:
        if not old or "data" not in old:
            return None
        return {**old, "data": {**old["data"], **fields, "updated_at": now}}

    return patch


class TranscriptionMutations:
    """Transcribe, update and delete with cache invalidation and notifications."""

    def __init__(
        self,
        api: APIClient,
        cache: QueryCache,
        notifier: Notifier | None = None,
        retries: int = 1,
    ) -> None:
        self._api = api
        self._cache = cache
        self._notifier = notifier or LoggingNotifier()
        self._retries = retries

    def transcribe(self, audio_path: str | Path, language_code: str | None = None) -> dict:
        try:
            result = call_with_retries(
                lambda: self._api.transcribe_audio(audio_path, language_code), self._retries
            )
        except APIError as exc:
            self._notifier.error("Transcription Failed", exc.message)
            raise

        self._cache.invalidate(query_keys.lists())
        if result.get("warning"):
            self._notifier.error("Not Saved", result["warning"])
        else:
            self._notifier.success("Success", "Audio transcribed successfully")
        return result

    def update(
        self,
        transcription_id: str,
        *,
        transcription_text: str | None = None,
        language_code: str | None = None,
        status: str | None = None,
    ) -> dict:
        """Optimistically update a transcription; the cache reverts on failure."""
        fields = {
            name: value
            for name, value in (
                ("transcription_text", transcription_text),
                ("language_code", language_code),
                ("status", status),
            )
            if value is not None
        }
        if not fields:
            raise APIError("At least one field must be provided for update", category="validation")

        key = query_keys.detail(transcription_id)
        optimistic = OptimisticUpdate.begin(self._cache, key, _patch_detail(fields))
        try:
            response = call_with_retries(
                lambda: self._api.update_transcription(transcription_id, **fields),
                self._retries,
            )
        except APIError as exc:
            optimistic.revert()
            logger.warning("Update of %s failed, cache reverted: %s", transcription_id, exc.message)
            self._notifier.error("Update Failed", exc.message)
            raise

        optimistic.commit(response)
        self._cache.invalidate(query_keys.lists())
        self._notifier.success("Success", "Transcription updated successfully")
        return response

    def update_text(self, transcription_id: str, text: str) -> dict:
        return self.update(transcription_id, transcription_text=text)

    def delete(self, transcription_id: str) -> dict:
        try:
            response = call_with_retries(
                lambda: self._api.delete_transcription(transcription_id), self._retries
            )
        except APIError as exc:
            self._notifier.error("Delete Failed", exc.message)
            raise

        self._cache.remove(query_keys.detail(transcription_id))
        self._cache.invalidate(query_keys.lists())
        self._notifier.success("Success", "Transcription deleted successfully")
        return response
