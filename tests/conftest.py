"""Shared pytest fixtures for the Lectra test suite.

Provides a mock recognizer, in-memory SQLite store fixtures and sample
audio payloads used across unit and integration tests.
"""

import struct
from unittest.mock import AsyncMock

import pytest

# ---------------------------------------------------------------------------
# Recognition Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_recognizer():
    """Create a mock recognizer for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseRecognizer interface that
        recognizes "hello world" on both paths.
    """
    from lectra.services.recognition.base import BaseRecognizer

    recognizer = AsyncMock(spec=BaseRecognizer)
    recognizer.transcribe.return_value = "hello world"
    recognizer.transcribe_long.return_value = "hello world"
    return recognizer


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def wav_bytes():
    """A tiny but well-formed 16 kHz mono WAV file (100 ms of silence)."""
    import io
    import wave

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        wf.writeframes(struct.pack("<h", 0) * 1600)
    return buf.getvalue()


@pytest.fixture
def sample_audio_path(tmp_path, wav_bytes):
    """Write ``wav_bytes`` to a temporary file and return its path."""
    path = tmp_path / "memo.wav"
    path.write_bytes(wav_bytes)
    return path


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test.

    ``StaticPool`` keeps a single connection so every session sees the same
    in-memory database.
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from lectra.services.storage.database import create_tables

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a TranscriptionRepository bound to the test session."""
    from lectra.services.storage.repository import TranscriptionRepository

    return TranscriptionRepository(db_session)


@pytest.fixture
def blob_store(tmp_path):
    """Filesystem blob store rooted in the test's temp directory."""
    from lectra.services.storage.blob_store import LocalBlobStore

    return LocalBlobStore(tmp_path / "audio", "http://test/audio")


@pytest.fixture
async def store(db_engine, blob_store):
    """StoreClient over the in-memory engine and the temp blob store."""
    from lectra.core.config import Settings
    from lectra.services.storage.database import init_store

    return await init_store(Settings(), engine=db_engine, blob_store=blob_store)
