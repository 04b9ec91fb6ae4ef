"""Local recognizer using faster-whisper.

Decodes the uploaded bytes in-process, so no cloud credentials are needed.
The WhisperModel is loaded lazily and cached at module level to avoid
repeated initialization overhead.
"""

import asyncio
import io
import logging

from faster_whisper import WhisperModel

from lectra.core.config import get_settings
from lectra.core.exceptions import RecognitionError
from lectra.services.recognition.base import BaseRecognizer

logger = logging.getLogger(__name__)

_model_cache: WhisperModel | None = None


def whisper_language(language_code: str) -> str | None:
    """Reduce a BCP-47 tag (``pt-BR``) to Whisper's ISO 639-1 code (``pt``)."""
    primary = language_code.split("-", 1)[0].lower()
    return primary or None


class WhisperRecognizer(BaseRecognizer):
    """Speech-to-text provider using faster-whisper (CTranslate2).

    Whisper has no separate long-audio API; ``transcribe_long`` runs the same
    local decode with a wider beam.

    Args:
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(
        self,
        model_size: str | None = None,
        device: str = "cpu",
        compute_type: str = "int8",
        settings=None,
    ) -> None:
        self._settings = settings or get_settings()
        self._model_size = model_size or self._settings.whisper_model
        self._device = device
        self._compute_type = compute_type

    def _get_model(self) -> WhisperModel:
        """Return the cached WhisperModel, loading it on first use."""
        global _model_cache  # noqa: PLW0603
        if _model_cache is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            _model_cache = WhisperModel(
                self._model_size,
                device=self._device,
                compute_type=self._compute_type,
            )
        return _model_cache

    def _run_transcription(self, audio: bytes, language: str | None, beam_size: int) -> str:
        """Run synchronous transcription (CPU-bound).

        Must be called via asyncio.to_thread(). The segment iterator is
        materialized inside this function to avoid CTranslate2
        thread-safety issues.
        """
        model = self._get_model()
        segments_iter, _info = model.transcribe(
            io.BytesIO(audio),
            language=language,
            beam_size=beam_size,
            vad_filter=True,
        )
        texts = [seg.text.strip() for seg in segments_iter]
        return " ".join(t for t in texts if t).strip()

    async def transcribe(self, audio: bytes, mime_type: str, language_code: str) -> str:
        try:
            return await asyncio.to_thread(
                self._run_transcription, audio, whisper_language(language_code), 1
            )
        except Exception as exc:
            raise RecognitionError(detail=f"Whisper transcription failed: {exc}") from exc

    async def transcribe_long(self, audio: bytes, mime_type: str, language_code: str) -> str:
        try:
            return await asyncio.to_thread(
                self._run_transcription, audio, whisper_language(language_code), 5
            )
        except Exception as exc:
            raise RecognitionError(detail=f"Whisper transcription failed: {exc}") from exc
