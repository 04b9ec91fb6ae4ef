"""Integration test fixtures for Lectra.

Provides an async HTTP client for an application wired to the in-memory
SQLite store, a temporary local blob store and the mock recognizer.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from lectra.api.app import create_app
from lectra.core.config import Settings


@pytest.fixture
def settings(tmp_path):
    """Settings with rate limiting disabled and audio under tmp_path."""
    return Settings(
        storage_provider="local",
        audio_storage_dir=str(tmp_path / "audio"),
        rate_limit_requests=0,
    )


@pytest.fixture
def app(settings, store, mock_recognizer):
    """Create a fresh FastAPI application with the test store injected."""
    return create_app(settings=settings, store=store, recognizer=mock_recognizer)


@pytest.fixture
async def async_client(app):
    """AsyncClient talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def seed(store):
    """Insert transcriptions directly through the repository.

    Returns an async callable ``seed(count, text=...)`` yielding the ids in
    creation order.
    """
    from lectra.services.storage.repository import TranscriptionRepository

    async def _seed(count=1, text="hello world", **kwargs):
        ids = []
        async with store.session() as session:
            repo = TranscriptionRepository(session)
            for i in range(count):
                row = await repo.create(
                    audio_file_name=f"memo-{i}.wav",
                    transcription_text=text,
                    audio_mime_type="audio/wav",
                    **kwargs,
                )
                ids.append(row.id)
        return ids

    return _seed
