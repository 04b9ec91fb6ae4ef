"""Google Cloud Speech-to-Text recognizer.

Wraps the synchronous ``speech.SpeechClient`` and offloads each call with
``asyncio.to_thread``. The client is created lazily on first use so that
importing this module does not require credentials.
"""

import asyncio
import logging

from google.cloud import speech

from lectra.core.config import get_settings
from lectra.core.exceptions import RecognitionError
from lectra.services.recognition.base import BaseRecognizer

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "LINEAR16"

# MIME type → RecognitionConfig.AudioEncoding member name.
# Unknown MIME types fall back to DEFAULT_ENCODING instead of failing.
MIME_TO_ENCODING: dict[str, str] = {
    "audio/wav": "LINEAR16",
    "audio/x-wav": "LINEAR16",
    "audio/mpeg": "MP3",
    "audio/mp3": "MP3",
    "audio/mp4": "MP3",
    "audio/m4a": "MP3",
    "audio/ogg": "OGG_OPUS",
    "audio/webm": "WEBM_OPUS",
    "audio/flac": "FLAC",
}


def encoding_for_mime_type(mime_type: str | None) -> str:
    """Return the encoding name for *mime_type*, defaulting to LINEAR16."""
    return MIME_TO_ENCODING.get(mime_type or "", DEFAULT_ENCODING)


def extract_transcript(response) -> str:
    """Join the top alternative of every result with newlines and strip.

    Results without alternatives contribute an empty line.
    """
    results = getattr(response, "results", None)
    if not results:
        return ""
    lines = [r.alternatives[0].transcript if r.alternatives else "" for r in results]
    return "\n".join(lines).strip()


class GoogleSpeechRecognizer(BaseRecognizer):
    """Speech-to-text via Google Cloud ``recognize`` / ``long_running_recognize``.

    Args:
        client: Optional pre-built ``speech.SpeechClient`` (used in tests).
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(self, client: speech.SpeechClient | None = None, settings=None) -> None:
        self._settings = settings or get_settings()
        self._client = client

    def _get_client(self) -> speech.SpeechClient:
        """Return the SpeechClient, creating it on first use."""
        if self._client is None:
            credentials_path = self._settings.google_application_credentials
            if credentials_path:
                logger.info("Loading Google credentials from %s", credentials_path)
                self._client = speech.SpeechClient.from_service_account_file(credentials_path)
            else:
                self._client = speech.SpeechClient()
        return self._client

    def _build_request(
        self, audio: bytes, mime_type: str, language_code: str
    ) -> tuple[speech.RecognitionConfig, speech.RecognitionAudio]:
        encoding = speech.RecognitionConfig.AudioEncoding[encoding_for_mime_type(mime_type)]
        config = speech.RecognitionConfig(
            encoding=encoding,
            sample_rate_hertz=self._settings.recognition_sample_rate_hertz,
            language_code=language_code,
            enable_automatic_punctuation=True,
            model=self._settings.recognition_model,
            use_enhanced=self._settings.recognition_use_enhanced,
        )
        return config, speech.RecognitionAudio(content=audio)

    def _recognize_sync(self, audio: bytes, mime_type: str, language_code: str) -> str:
        config, recognition_audio = self._build_request(audio, mime_type, language_code)
        response = self._get_client().recognize(config=config, audio=recognition_audio)
        return extract_transcript(response)

    def _recognize_long_sync(self, audio: bytes, mime_type: str, language_code: str) -> str:
        config, recognition_audio = self._build_request(audio, mime_type, language_code)
        operation = self._get_client().long_running_recognize(
            config=config, audio=recognition_audio
        )
        response = operation.result(timeout=self._settings.recognition_timeout_seconds)
        return extract_transcript(response)

    async def transcribe(self, audio: bytes, mime_type: str, language_code: str) -> str:
        try:
            return await asyncio.to_thread(self._recognize_sync, audio, mime_type, language_code)
        except Exception as exc:
            raise RecognitionError(detail=f"Transcription failed: {exc}") from exc

    async def transcribe_long(self, audio: bytes, mime_type: str, language_code: str) -> str:
        try:
            return await asyncio.to_thread(
                self._recognize_long_sync, audio, mime_type, language_code
            )
        except Exception as exc:
            raise RecognitionError(detail=f"Long transcription failed: {exc}") from exc
