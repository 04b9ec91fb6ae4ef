"""
Lectra exception hierarchy.

All application-specific exceptions inherit from LectraError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class LectraError(Exception):
    """Base exception for all Lectra errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "LECTRA_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    @property
    def status(self) -> str:
        """Envelope status: ``fail`` for client errors, ``error`` otherwise."""
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationFailedError(LectraError):
    """Raised when request input is rejected before any side effect."""

    def __init__(self, detail: str, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(detail=detail, code=code, status_code=400)


class FileTooLargeError(LectraError):
    """Raised when an upload exceeds the synchronous recognition ceiling."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(
            detail=(
                f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB "
                "for synchronous transcription."
            ),
            code="FILE_TOO_LARGE",
            status_code=413,
        )


class TranscriptionNotFoundError(LectraError):
    """Raised when a transcription ID does not exist or was soft-deleted."""

    def __init__(self, transcription_id: str) -> None:
        super().__init__(
            detail=f"Transcription not found: {transcription_id}",
            code="TRANSCRIPTION_NOT_FOUND",
            status_code=404,
        )


class RecognitionError(LectraError):
    """Raised when the speech recognition provider fails."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(
            detail=detail,
            code="RECOGNITION_ERROR",
            status_code=502,
        )


class StorageError(LectraError):
    """Raised when the blob store or row store cannot complete a write."""

    def __init__(self, detail: str = "Storage operation failed") -> None:
        super().__init__(detail=detail, code="STORAGE_ERROR", status_code=500)


class RateLimitExceededError(LectraError):
    """Raised when a client address exceeds its request window."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(
            detail="Too many requests from this IP, please try again later.",
            code="RATE_LIMITED",
            status_code=429,
        )
