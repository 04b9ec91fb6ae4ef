"""
SQLAlchemy ORM model for the ``transcriptions`` table.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lectra.services.storage.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Transcription(Base):
    """One uploaded audio file and its recognized text."""

    __tablename__ = "transcriptions"
    __table_args__ = (Index("ix_transcriptions_active_created", "deleted_at", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    audio_file_name: Mapped[str] = mapped_column(String(255))
    audio_file_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    audio_mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    audio_duration_seconds: Mapped[float | None] = mapped_column(nullable=True)
    audio_file_size_bytes: Mapped[int | None] = mapped_column(nullable=True)
    transcription_text: Mapped[str] = mapped_column(Text, default="")
    language_code: Mapped[str] = mapped_column(String(10), default="en-US")
    status: Mapped[str] = mapped_column(String(32), default="completed")
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, default=None)
    word_count: Mapped[int | None] = mapped_column(nullable=True)
    confidence_score: Mapped[float | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Transcription id={self.id} status={self.status!r}>"
