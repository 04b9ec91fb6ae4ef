"""Integration tests for REST API endpoints with real in-memory SQLite."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from lectra.api.app import create_app
from lectra.core.audio import MAX_UPLOAD_BYTES
from lectra.core.exceptions import RecognitionError, StorageError
from lectra.services.storage.repository import TranscriptionRepository

BASE = "/api/transcription"


def _audio(data, name="memo.wav", mime="audio/wav"):
    return {"audio": (name, data, mime)}


# ---------------------------------------------------------------------------
# Health / languages
# ---------------------------------------------------------------------------


async def test_root_health(async_client):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "success"
    assert resp.json()["message"] == "Lectra backend server is running"


async def test_transcription_health(async_client):
    resp = await async_client.get(f"{BASE}/health")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Transcription service is running"


async def test_languages(async_client):
    resp = await async_client.get(f"{BASE}/languages")
    assert resp.status_code == 200
    codes = [lang["code"] for lang in resp.json()["data"]]
    assert "en-US" in codes
    assert len(codes) == 20


async def test_unknown_route_uses_envelope(async_client):
    resp = await async_client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["status"] == "fail"
    assert resp.json()["code"] == "HTTP_ERROR"


# ---------------------------------------------------------------------------
# Transcribe
# ---------------------------------------------------------------------------


async def test_transcribe_nine_megabyte_wav(async_client, mock_recognizer):
    """Upload → recognize "hello world" → blob stored → row with word_count 2."""
    data = b"\x00" * (9 * 1024 * 1024)

    resp = await async_client.post(
        f"{BASE}/transcribe", files=_audio(data), data={"language_code": "en-US"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["transcription"] == "hello world"
    assert body["audioUrl"] is not None
    assert body["metadata"]["wordCount"] == 2
    assert body["metadata"]["fileSize"] == len(data)
    assert body["warning"] is None
    mock_recognizer.transcribe.assert_awaited_once_with(data, "audio/wav", "en-US")

    detail = await async_client.get(f"{BASE}/{body['id']}")
    assert detail.status_code == 200
    row = detail.json()["data"]
    assert row["word_count"] == 2
    assert row["audio_file_url"] == body["audioUrl"]
    assert row["status"] == "completed"


async def test_created_at_is_utc_in_transcribe_and_detail(async_client, wav_bytes):
    body = (await async_client.post(f"{BASE}/transcribe", files=_audio(wav_bytes))).json()

    row = (await async_client.get(f"{BASE}/{body['id']}")).json()["data"]
    listed = (await async_client.get(f"{BASE}/history")).json()["data"][0]

    assert body["metadata"]["createdAt"].endswith("Z")
    assert row["created_at"] == body["metadata"]["createdAt"]
    assert listed["created_at"] == row["created_at"]
    assert row["updated_at"].endswith("Z")


async def test_transcribe_defaults_to_en_us(async_client, mock_recognizer, wav_bytes):
    resp = await async_client.post(f"{BASE}/transcribe", files=_audio(wav_bytes))
    assert resp.status_code == 200
    assert resp.json()["metadata"]["languageCode"] == "en-US"


async def test_transcribe_blob_failure_saves_row_without_url(async_client, store, wav_bytes):
    store.blobs.upload = AsyncMock(side_effect=StorageError("bucket missing"))

    resp = await async_client.post(f"{BASE}/transcribe", files=_audio(wav_bytes))

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] is not None
    assert body["audioUrl"] is None
    row = (await async_client.get(f"{BASE}/{body['id']}")).json()["data"]
    assert row["audio_file_url"] is None


async def test_transcribe_no_speech(async_client, mock_recognizer, wav_bytes):
    mock_recognizer.transcribe.return_value = "   "

    resp = await async_client.post(f"{BASE}/transcribe", files=_audio(wav_bytes))

    assert resp.status_code == 200
    assert resp.json()["transcription"] == ""
    assert resp.json()["message"] == "No speech detected in the audio file"
    history = (await async_client.get(f"{BASE}/history")).json()
    assert history["pagination"]["total"] == 0


async def test_transcribe_recognition_failure(async_client, mock_recognizer, wav_bytes):
    mock_recognizer.transcribe.side_effect = RecognitionError("Transcription failed: quota")

    resp = await async_client.post(f"{BASE}/transcribe", files=_audio(wav_bytes))

    assert resp.status_code == 502
    assert resp.json()["status"] == "error"
    assert resp.json()["code"] == "RECOGNITION_ERROR"


async def test_transcribe_oversized_file(async_client, mock_recognizer):
    resp = await async_client.post(
        f"{BASE}/transcribe", files=_audio(b"\x00" * (MAX_UPLOAD_BYTES + 1))
    )

    assert resp.status_code == 413
    assert resp.json()["status"] == "fail"
    assert resp.json()["code"] == "FILE_TOO_LARGE"
    mock_recognizer.transcribe.assert_not_awaited()


@pytest.mark.parametrize(
    "files,data,code",
    [
        (None, {"language_code": "en-US"}, "NO_FILE"),
        (_audio(b"RIFF", name="notes.txt", mime="text/plain"), None, "INVALID_FILE_TYPE"),
        (_audio(b""), None, "EMPTY_FILE"),
        (_audio(b"RIFF"), {"language_code": "xx-XX"}, "INVALID_LANGUAGE"),
    ],
)
async def test_transcribe_validation_errors(async_client, mock_recognizer, files, data, code):
    resp = await async_client.post(f"{BASE}/transcribe", files=files, data=data)

    assert resp.status_code == 400
    assert resp.json()["status"] == "fail"
    assert resp.json()["code"] == code
    mock_recognizer.transcribe.assert_not_awaited()


# ---------------------------------------------------------------------------
# History / search
# ---------------------------------------------------------------------------


async def test_history_pages_through_25_rows(async_client, seed):
    await seed(25)

    first = (await async_client.get(f"{BASE}/history?limit=20&offset=0")).json()
    second = (await async_client.get(f"{BASE}/history?limit=20&offset=20")).json()

    assert len(first["data"]) == 20
    assert first["pagination"] == {"limit": 20, "offset": 0, "total": 25, "hasMore": True}
    assert len(second["data"]) == 5
    assert second["pagination"]["hasMore"] is False
    ids = [r["id"] for r in first["data"] + second["data"]]
    assert len(set(ids)) == 25


@pytest.mark.parametrize("limit,expected", [(500, 100), (0, 1), (-3, 1)])
async def test_history_limit_is_clamped(async_client, limit, expected):
    resp = await async_client.get(f"{BASE}/history?limit={limit}")
    assert resp.status_code == 200
    assert resp.json()["pagination"]["limit"] == expected


async def test_history_negative_offset_is_rejected(async_client):
    resp = await async_client.get(f"{BASE}/history?offset=-1")
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


async def test_search(async_client, seed):
    await seed(2, text="Quarterly budget review")
    await seed(3, text="grocery list")

    resp = await async_client.get(f"{BASE}/search", params={"q": "BUDGET"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["total"] == 2
    assert all("budget" in r["transcription_text"].lower() for r in body["data"])


async def test_search_requires_term(async_client):
    resp = await async_client.get(f"{BASE}/search")
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Detail / update / delete
# ---------------------------------------------------------------------------


async def test_get_missing_returns_404(async_client):
    resp = await async_client.get(f"{BASE}/does-not-exist")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == "fail"
    assert body["code"] == "TRANSCRIPTION_NOT_FOUND"
    assert "timestamp" in body


async def test_update_text_recomputes_word_count(async_client, seed):
    (tid,) = await seed(1, text="one two")

    resp = await async_client.put(f"{BASE}/{tid}", json={"transcription_text": "a b c d"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["transcription_text"] == "a b c d"
    assert data["word_count"] == 4


async def test_update_status_keeps_word_count(async_client, seed):
    (tid,) = await seed(1, text="one two")

    resp = await async_client.put(f"{BASE}/{tid}", json={"status": "reviewed"})

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "reviewed"
    assert resp.json()["data"]["word_count"] == 2


async def test_update_invalid_language_mutates_nothing(async_client, seed):
    (tid,) = await seed(1, text="unchanged")
    before = (await async_client.get(f"{BASE}/{tid}")).json()["data"]

    resp = await async_client.put(
        f"{BASE}/{tid}", json={"language_code": "xx-XX", "transcription_text": "changed"}
    )

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_LANGUAGE"
    after = (await async_client.get(f"{BASE}/{tid}")).json()["data"]
    assert after == before


async def test_update_requires_a_field(async_client, seed):
    (tid,) = await seed(1)
    resp = await async_client.put(f"{BASE}/{tid}", json={})
    assert resp.status_code == 400
    assert resp.json()["message"] == "At least one field must be provided for update"


async def test_update_with_only_empty_text_is_rejected(async_client, seed):
    (tid,) = await seed(1, text="keep these words")

    resp = await async_client.put(f"{BASE}/{tid}", json={"transcription_text": ""})

    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"
    data = (await async_client.get(f"{BASE}/{tid}")).json()["data"]
    assert data["transcription_text"] == "keep these words"
    assert data["word_count"] == 3


async def test_update_missing_returns_404(async_client):
    resp = await async_client.put(f"{BASE}/does-not-exist", json={"status": "x"})
    assert resp.status_code == 404


async def test_delete_is_soft_and_not_idempotent(async_client, seed):
    (tid,) = await seed(1)

    first = await async_client.delete(f"{BASE}/{tid}")
    assert first.status_code == 200
    assert first.json() == {"status": "success", "message": "Transcription deleted successfully"}

    assert (await async_client.delete(f"{BASE}/{tid}")).status_code == 404
    assert (await async_client.get(f"{BASE}/{tid}")).status_code == 404
    history = (await async_client.get(f"{BASE}/history")).json()
    assert history["pagination"]["total"] == 0


async def test_delete_store_failure_returns_500(async_client, seed):
    (tid,) = await seed(1)

    with patch.object(
        TranscriptionRepository, "soft_delete", new_callable=AsyncMock, return_value=False
    ):
        resp = await async_client.delete(f"{BASE}/{tid}")

    assert resp.status_code == 500
    body = resp.json()
    assert body["status"] == "error"
    assert body["code"] == "STORAGE_ERROR"
    assert (await async_client.get(f"{BASE}/{tid}")).status_code == 200


async def test_export(async_client, seed):
    (tid,) = await seed(1, text="exported words here")

    resp = await async_client.get(f"{BASE}/{tid}/export")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert "attachment" in resp.headers["content-disposition"]
    assert "memo-0_" in resp.headers["content-disposition"]
    assert "exported words here" in resp.text
    assert "Word Count: 3" in resp.text


async def test_export_missing_returns_404(async_client):
    resp = await async_client.get(f"{BASE}/does-not-exist/export")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


async def test_rate_limit_applies_to_api_routes(settings, store, mock_recognizer):
    settings = settings.model_copy(update={"rate_limit_requests": 2})
    app = create_app(settings=settings, store=store, recognizer=mock_recognizer)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        codes = [(await client.get(f"{BASE}/health")).status_code for _ in range(3)]
        root = await client.get("/health")

    assert codes == [200, 200, 429]
    assert root.status_code == 200


async def test_rate_limited_response_carries_cors_headers(settings, store, mock_recognizer):
    settings = settings.model_copy(update={"rate_limit_requests": 1})
    app = create_app(settings=settings, store=store, recognizer=mock_recognizer)
    origin = settings.cors_origins[0]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get(f"{BASE}/health", headers={"Origin": origin})
        resp = await client.get(f"{BASE}/health", headers={"Origin": origin})

    assert resp.status_code == 429
    assert resp.json()["code"] == "RATE_LIMITED"
    assert resp.headers["access-control-allow-origin"] == origin


# ---------------------------------------------------------------------------
# App wiring / unexpected errors
# ---------------------------------------------------------------------------


async def test_recognizer_uses_injected_settings(settings, store):
    settings = settings.model_copy(
        update={"recognition_sample_rate_hertz": 48000, "recognition_model": "latest_long"}
    )

    app = create_app(settings=settings, store=store)

    assert app.state.recognizer._settings is settings


async def test_unhandled_error_returns_internal_error_envelope(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    with patch.object(
        TranscriptionRepository,
        "find_all",
        new_callable=AsyncMock,
        side_effect=RuntimeError("db exploded at /srv/lectra.db"),
    ):
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.get(f"{BASE}/history")

    assert resp.status_code == 500
    body = resp.json()
    assert body["status"] == "error"
    assert body["code"] == "INTERNAL_ERROR"
    assert body["message"] == "Internal server error"
    assert "exploded" not in resp.text
    assert "Traceback" not in resp.text
