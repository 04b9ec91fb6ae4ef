"""
Abstract base class for speech recognition providers.

All recognizers (Google Cloud Speech-to-Text, local faster-whisper) implement
this interface so the transcription pipeline stays provider-agnostic.
"""

from abc import ABC, abstractmethod


class BaseRecognizer(ABC):
    """Interface that every recognition provider must implement.

    Both methods return the recognized text, stripped. An empty string means
    no speech was detected and is a valid result, distinct from a failure.
    Provider or transport failures raise :class:`RecognitionError`.
    """

    @abstractmethod
    async def transcribe(self, audio: bytes, mime_type: str, language_code: str) -> str:
        """Recognize a short clip with a single synchronous request.

        Args:
            audio: Raw bytes of the uploaded audio file.
            mime_type: MIME type of the upload (e.g. ``audio/wav``).
            language_code: BCP-47 language tag (e.g. ``en-US``).
        """

    @abstractmethod
    async def transcribe_long(self, audio: bytes, mime_type: str, language_code: str) -> str:
        """Recognize long audio through a long-running operation.

        Blocks (asynchronously) until the operation completes.
        """
