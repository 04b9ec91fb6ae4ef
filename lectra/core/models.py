"""
Pydantic v2 request / response models used across the API layer.

Every response carries an envelope ``status`` of ``success``, ``fail`` or
``error``. Pagination and transcribe metadata are serialized in camelCase to
match the mobile client's wire format; transcription rows keep their
snake_case column names.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EnvelopeStatus = Literal["success", "fail", "error"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health and GET /api/transcription/health response."""

    status: EnvelopeStatus = "success"
    message: str = "Transcription service is running"
    timestamp: datetime


class MessageResponse(BaseModel):
    """Envelope with a human-readable message and no payload."""

    status: EnvelopeStatus = "success"
    message: str


# ---------------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------------


class LanguageResponse(BaseModel):
    code: str
    name: str
    native_name: str


class LanguageListResponse(BaseModel):
    status: EnvelopeStatus = "success"
    data: list[LanguageResponse]


# ---------------------------------------------------------------------------
# Transcription rows
# ---------------------------------------------------------------------------


class TranscriptionStatus(StrEnum):
    """Known values of the advisory ``status`` tag (not enforced)."""

    processing = "processing"
    completed = "completed"
    failed = "failed"


class TranscriptionRecord(BaseModel):
    """A persisted transcription as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    audio_file_name: str
    audio_file_url: str | None = None
    audio_mime_type: str | None = None
    audio_duration_seconds: float | None = None
    audio_file_size_bytes: int | None = None
    transcription_text: str
    language_code: str
    status: str
    created_at: UTCDateTime
    updated_at: UTCDateTime
    deleted_at: UTCDateTime | None = None
    word_count: int | None = None
    confidence_score: float | None = None


class TranscriptionUpdate(BaseModel):
    """PUT /api/transcription/{id} request body. At least one field is required."""

    transcription_text: str | None = None
    language_code: str | None = None
    status: str | None = Field(default=None, max_length=32)

    def changes(self) -> dict:
        """Return only the fields the caller actually supplied (non-null)."""
        return self.model_dump(exclude_none=True)

    def has_changes(self) -> bool:
        """True when at least one field is non-empty; ``""`` alone is no update."""
        return any(self.changes().values())


class DetailResponse(BaseModel):
    status: EnvelopeStatus = "success"
    data: TranscriptionRecord


class Pagination(_CamelModel):
    limit: int
    offset: int
    total: int
    has_more: bool


class HistoryResponse(BaseModel):
    """Paginated list envelope shared by history and search."""

    status: EnvelopeStatus = "success"
    data: list[TranscriptionRecord] = Field(default_factory=list)
    pagination: Pagination


# ---------------------------------------------------------------------------
# Transcribe
# ---------------------------------------------------------------------------


class TranscribeMetadata(_CamelModel):
    original_name: str
    mime_type: str
    file_size: int
    language_code: str
    word_count: int | None = None
    created_at: UTCDateTime | None = None


class TranscribeResponse(_CamelModel):
    """POST /api/transcription/transcribe response.

    ``id`` is ``None`` when nothing was persisted: either no speech was
    detected (``message`` explains) or the row write failed (``warning``
    explains).
    """

    status: EnvelopeStatus = "success"
    transcription: str
    message: str | None = None
    id: str | None = None
    audio_url: str | None = None
    metadata: TranscribeMetadata | None = None
    warning: str | None = None
