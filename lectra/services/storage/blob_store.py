"""
Audio blob storage backends.

The blob store is independent of the transcription table: uploads and row
writes are never coupled in a transaction, and deleting a row does not remove
its blob. Every backend wraps provider failures in :class:`StorageError`.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

from lectra.core.exceptions import StorageError
from lectra.core.utils import sanitize_file_name

logger = logging.getLogger(__name__)


class BaseBlobStore(ABC):
    """Interface every audio blob backend must implement."""

    @staticmethod
    def key_for(file_name: str) -> str:
        """Build a collision-resistant object key: ``{epoch_ms}-{sanitized name}``."""
        return f"{int(time.time() * 1000)}-{sanitize_file_name(file_name)}"

    @staticmethod
    def key_from_url(url: str) -> str | None:
        """Return the object key (last path segment) of a public URL."""
        key = url.rstrip("/").rsplit("/", 1)[-1]
        return key or None

    @abstractmethod
    async def upload(self, data: bytes, file_name: str, mime_type: str) -> str:
        """Store *data* under a fresh key and return its public URL.

        Raises:
            StorageError: If the backend rejects the write.
        """

    @abstractmethod
    async def delete(self, url: str) -> bool:
        """Remove the blob behind *url*. Returns False if nothing was removed."""


class LocalBlobStore(BaseBlobStore):
    """Filesystem-backed blob store; files are served from ``public_base_url``.

    Args:
        root_dir: Directory that holds the audio files.
        public_base_url: URL prefix under which ``root_dir`` is served.
    """

    def __init__(self, root_dir: str | Path, public_base_url: str) -> None:
        self._root = Path(root_dir)
        self._public_base_url = public_base_url.rstrip("/")

    @property
    def root_dir(self) -> Path:
        return self._root

    def _write(self, key: str, data: bytes) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._root / key
        # x-mode: never overwrite an existing blob
        with open(path, "xb") as fh:
            fh.write(data)

    async def upload(self, data: bytes, file_name: str, mime_type: str) -> str:
        key = self.key_for(file_name)
        try:
            await asyncio.to_thread(self._write, key, data)
        except OSError as exc:
            raise StorageError(detail=f"Audio upload failed: {exc}") from exc
        logger.info("Stored audio blob %s (%d bytes, %s)", key, len(data), mime_type)
        return f"{self._public_base_url}/{key}"

    async def delete(self, url: str) -> bool:
        key = self.key_from_url(url)
        if key is None:
            logger.warning("Could not extract blob key from URL %s", url)
            return False
        path = self._root / key
        if not path.is_file():
            return False
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as exc:
            logger.warning("Failed to delete audio blob %s: %s", key, exc)
            return False
        return True


class SupabaseBlobStore(BaseBlobStore):
    """Supabase Storage bucket backend.

    The ``supabase`` client is synchronous, so every call is offloaded with
    ``asyncio.to_thread``.

    Args:
        url: Supabase project URL.
        key: Supabase API key.
        bucket: Storage bucket name.
        client: Optional pre-built ``supabase.Client`` (used in tests).
    """

    def __init__(self, url: str, key: str, bucket: str, client=None) -> None:
        self._url = url
        self._key = key
        self._client = client
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket

    def _get_client(self):
        """Return the Supabase client, creating it on first use."""
        if self._client is None:
            from supabase import create_client

            self._client = create_client(self._url, self._key)
        return self._client

    def _upload_sync(self, key: str, data: bytes, mime_type: str) -> str:
        bucket = self._get_client().storage.from_(self._bucket)
        bucket.upload(
            key,
            data,
            {"content-type": mime_type, "cache-control": "3600", "upsert": "false"},
        )
        return bucket.get_public_url(key)

    async def upload(self, data: bytes, file_name: str, mime_type: str) -> str:
        key = self.key_for(file_name)
        try:
            url = await asyncio.to_thread(self._upload_sync, key, data, mime_type)
        except Exception as exc:
            raise StorageError(detail=f"Audio upload failed: {exc}") from exc
        logger.info("Uploaded audio blob %s to bucket %s", key, self._bucket)
        return url

    async def delete(self, url: str) -> bool:
        key = self.key_from_url(url)
        if key is None:
            logger.warning("Could not extract blob key from URL %s", url)
            return False
        try:
            await asyncio.to_thread(self._get_client().storage.from_(self._bucket).remove, [key])
        except Exception as exc:
            logger.warning("Failed to delete audio blob %s: %s", key, exc)
            return False
        return True


def create_blob_store(provider: str, settings) -> BaseBlobStore:
    """Factory function to create a blob store based on provider.

    Args:
        provider: Storage provider name ("local", "supabase").
        settings: Application settings supplying paths and credentials.

    Returns:
        BaseBlobStore implementation instance.

    Raises:
        ValueError: If provider is unknown.
    """
    if provider == "local":
        return LocalBlobStore(settings.audio_storage_dir, settings.public_audio_base_url)
    elif provider == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            logger.warning(
                "SUPABASE_URL or SUPABASE_KEY not set; audio uploads will fail "
                "and transcriptions will be stored without an audio URL"
            )
        return SupabaseBlobStore(
            settings.supabase_url,
            settings.supabase_key,
            settings.supabase_storage_bucket,
        )
    else:
        raise ValueError(f"Unknown storage provider: {provider}")
