"""
Transcription REST endpoints.

Implements upload-and-transcribe, history, search, detail, update, soft
delete, and text export. Row access goes through ``TranscriptionRepository``;
the upload flow is delegated to ``TranscriptionPipeline``.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from lectra.api.deps import get_pipeline, get_store
from lectra.api.validation import validate_language_code, validated_upload
from lectra.core.exceptions import (
    StorageError,
    TranscriptionNotFoundError,
    ValidationFailedError,
)
from lectra.core.languages import SUPPORTED_LANGUAGES
from lectra.core.models import (
    DetailResponse,
    HealthResponse,
    HistoryResponse,
    LanguageListResponse,
    LanguageResponse,
    MessageResponse,
    Pagination,
    TranscribeResponse,
    TranscriptionRecord,
    TranscriptionUpdate,
)
from lectra.services.export import export_file_name, render_text_export
from lectra.services.pipeline import AudioUpload, TranscriptionPipeline
from lectra.services.storage.database import StoreClient
from lectra.services.storage.repository import TranscriptionRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transcription", tags=["transcription"])

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def _clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_PAGE_SIZE))


def _page_response(rows, total: int, limit: int, offset: int) -> HistoryResponse:
    return HistoryResponse(
        data=[TranscriptionRecord.model_validate(r) for r in rows],
        pagination=Pagination(
            limit=limit,
            offset=offset,
            total=total,
            has_more=offset + limit < total,
        ),
    )


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe(
    upload: AudioUpload = Depends(validated_upload),
    pipeline: TranscriptionPipeline = Depends(get_pipeline),
):
    """Transcribe an uploaded audio file and save the result."""
    return await pipeline.run(upload)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe for the transcription service."""
    return HealthResponse(timestamp=datetime.now(UTC))


@router.get("/languages", response_model=LanguageListResponse)
async def list_languages() -> LanguageListResponse:
    """List the languages accepted by ``language_code``."""
    return LanguageListResponse(
        data=[
            LanguageResponse(code=lang.code, name=lang.name, native_name=lang.native_name)
            for lang in SUPPORTED_LANGUAGES
        ]
    )


@router.get("/history", response_model=HistoryResponse)
async def history(
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    store: StoreClient = Depends(get_store),
):
    """Paginated list of active transcriptions, newest first.

    ``limit`` is clamped to [1, 100]; a negative ``offset`` is a 400.
    """
    limit = _clamp_limit(limit)
    async with store.session() as session:
        rows, total = await TranscriptionRepository(session).find_all(limit, offset)
        return _page_response(rows, total, limit, offset)


@router.get("/search", response_model=HistoryResponse)
async def search(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    store: StoreClient = Depends(get_store),
):
    """Case-insensitive substring search over transcription text."""
    limit = _clamp_limit(limit)
    async with store.session() as session:
        rows, total = await TranscriptionRepository(session).search(q, limit, offset)
        return _page_response(rows, total, limit, offset)


@router.get("/{transcription_id}", response_model=DetailResponse)
async def get_transcription(transcription_id: str, store: StoreClient = Depends(get_store)):
    """Get a single active transcription."""
    async with store.session() as session:
        row = await TranscriptionRepository(session).find_by_id(transcription_id)
        if row is None:
            raise TranscriptionNotFoundError(transcription_id)
        return DetailResponse(data=TranscriptionRecord.model_validate(row))


@router.get("/{transcription_id}/export", response_class=PlainTextResponse)
async def export_transcription(transcription_id: str, store: StoreClient = Depends(get_store)):
    """Download a transcription as a plain-text attachment."""
    async with store.session() as session:
        row = await TranscriptionRepository(session).find_by_id(transcription_id)
        if row is None:
            raise TranscriptionNotFoundError(transcription_id)
        content = render_text_export(row)
        file_name = export_file_name(row.audio_file_name)
    return PlainTextResponse(
        content,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.put("/{transcription_id}", response_model=DetailResponse)
async def update_transcription(
    transcription_id: str,
    body: TranscriptionUpdate,
    store: StoreClient = Depends(get_store),
):
    """Update text, language and/or status of a transcription.

    Empty strings do not count as a change, so ``{"transcription_text": ""}``
    on its own is a 400.
    """
    changes = body.changes()
    if not body.has_changes():
        raise ValidationFailedError("At least one field must be provided for update")
    if "language_code" in changes:
        validate_language_code(changes["language_code"])

    async with store.session() as session:
        row = await TranscriptionRepository(session).update(transcription_id, **changes)
        if row is None:
            raise TranscriptionNotFoundError(transcription_id)
        logger.info("Updated transcription %s (%s)", transcription_id, ", ".join(changes))
        return DetailResponse(data=TranscriptionRecord.model_validate(row))


@router.delete("/{transcription_id}", response_model=MessageResponse)
async def delete_transcription(transcription_id: str, store: StoreClient = Depends(get_store)):
    """Soft-delete a transcription. The audio blob is kept."""
    async with store.session() as session:
        repo = TranscriptionRepository(session)
        if await repo.find_by_id(transcription_id) is None:
            raise TranscriptionNotFoundError(transcription_id)
        if not await repo.soft_delete(transcription_id):
            raise StorageError("Failed to delete transcription")
    logger.info("Soft-deleted transcription %s", transcription_id)
    return MessageResponse(message="Transcription deleted successfully")
