"""Upload-to-record transcription pipeline.

One request runs these steps in order, with no internal retries:

1. recognize the (already validated) upload
2. short-circuit on an empty result, persisting nothing
3. upload the audio blob; on failure continue with no URL
4. create the transcript row; on failure return the text with a warning
5. shape the response

Recognition failures propagate as :class:`RecognitionError`. Storage failures
after recognition never fail the request, so recognized text is always
returned to the caller.

Usage::

    pipeline = TranscriptionPipeline(recognizer, store)
    response = await pipeline.run(AudioUpload("memo.wav", "audio/wav", data, "en-US"))
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from lectra.core.exceptions import StorageError
from lectra.core.models import TranscribeMetadata, TranscribeResponse, TranscriptionStatus
from lectra.services.recognition.base import BaseRecognizer
from lectra.services.storage.database import StoreClient
from lectra.services.storage.models_db import Transcription
from lectra.services.storage.repository import TranscriptionRepository

logger = logging.getLogger(__name__)

NO_SPEECH_MESSAGE = "No speech detected in the audio file"
NOT_SAVED_WARNING = "Transcription succeeded but could not be saved to database"


@dataclass(frozen=True)
class AudioUpload:
    """A validated audio upload."""

    file_name: str
    mime_type: str
    data: bytes
    language_code: str

    @property
    def size(self) -> int:
        return len(self.data)


class TranscriptionPipeline:
    """Coordinates recognizer, blob store and transcript store for one upload.

    Args:
        recognizer: Speech recognition provider.
        store: Row + blob store handle.
        long_audio_threshold_bytes: Uploads larger than this use the
            long-running recognition path. ``None`` disables it.
    """

    def __init__(
        self,
        recognizer: BaseRecognizer,
        store: StoreClient,
        long_audio_threshold_bytes: int | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._store = store
        self._long_threshold = long_audio_threshold_bytes

    async def run(self, upload: AudioUpload) -> TranscribeResponse:
        logger.info(
            "Transcribing audio: %s (%s, %s, %d bytes)",
            upload.file_name,
            upload.mime_type,
            upload.language_code,
            upload.size,
        )
        text = await self._recognize(upload)

        if not text.strip():
            logger.info("No speech detected in %s; nothing persisted", upload.file_name)
            return TranscribeResponse(transcription="", message=NO_SPEECH_MESSAGE)

        audio_url = await self._upload_blob(upload)
        row = await self._persist(upload, text, audio_url)

        metadata = TranscribeMetadata(
            original_name=upload.file_name,
            mime_type=upload.mime_type,
            file_size=upload.size,
            language_code=upload.language_code,
        )
        if row is None:
            if audio_url is not None:
                # No reconciliation job exists; the key is logged for manual cleanup
                logger.warning(
                    "Orphaned audio blob %s: row for %s was not saved",
                    self._store.blobs.key_from_url(audio_url),
                    upload.file_name,
                )
            return TranscribeResponse(
                transcription=text,
                audio_url=audio_url,
                metadata=metadata,
                warning=NOT_SAVED_WARNING,
            )

        metadata.word_count = row.word_count
        metadata.created_at = row.created_at
        return TranscribeResponse(
            transcription=text,
            id=row.id,
            audio_url=row.audio_file_url,
            metadata=metadata,
        )

    async def _recognize(self, upload: AudioUpload) -> str:
        if self._long_threshold is not None and upload.size > self._long_threshold:
            logger.info("Using long-running recognition for %s", upload.file_name)
            return await self._recognizer.transcribe_long(
                upload.data, upload.mime_type, upload.language_code
            )
        return await self._recognizer.transcribe(
            upload.data, upload.mime_type, upload.language_code
        )

    async def _upload_blob(self, upload: AudioUpload) -> str | None:
        try:
            return await self._store.blobs.upload(upload.data, upload.file_name, upload.mime_type)
        except StorageError as exc:
            logger.warning(
                "Audio upload failed for %s; continuing without audio URL: %s",
                upload.file_name,
                exc.detail,
            )
            return None

    async def _persist(
        self, upload: AudioUpload, text: str, audio_url: str | None
    ) -> Transcription | None:
        try:
            async with self._store.session() as session:
                repo = TranscriptionRepository(session)
                return await repo.create(
                    audio_file_name=upload.file_name,
                    audio_file_url=audio_url,
                    audio_mime_type=upload.mime_type,
                    audio_file_size_bytes=upload.size,
                    transcription_text=text,
                    language_code=upload.language_code,
                    status=TranscriptionStatus.completed,
                )
        except SQLAlchemyError:
            logger.exception("Failed to save transcription for %s", upload.file_name)
            return None
