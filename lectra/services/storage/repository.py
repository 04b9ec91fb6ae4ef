"""
Transcript store: data-access layer for the ``transcriptions`` table.

``TranscriptionRepository`` receives an ``AsyncSession`` and calls
``flush()`` rather than ``commit()`` so that transaction boundaries are
controlled by the caller (typically :meth:`StoreClient.session`).

Every read goes through :meth:`TranscriptionRepository._active`, so
soft-deleted rows never leak into lookups, listings or search. Only
:meth:`hard_delete` bypasses it.

Write operations never raise past this boundary: store failures are logged
and reported as ``None`` / ``False`` so the caller can degrade gracefully.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lectra.core.models import TranscriptionStatus
from lectra.core.utils import count_words
from lectra.services.storage.models_db import Transcription

logger = logging.getLogger(__name__)

# Columns a caller may change after creation
UPDATABLE_FIELDS = frozenset({"transcription_text", "language_code", "status", "confidence_score"})


class TranscriptionRepository:
    """CRUD + search over active (not soft-deleted) transcriptions.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Active-row predicate
    # ------------------------------------------------------------------

    @staticmethod
    def _active(stmt: Select | None = None) -> Select:
        """Restrict *stmt* (default ``SELECT transcriptions``) to active rows."""
        if stmt is None:
            stmt = select(Transcription)
        return stmt.where(Transcription.deleted_at.is_(None))

    async def _page(self, stmt: Select, limit: int, offset: int) -> tuple[list[Transcription], int]:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self._session.execute(count_stmt)).scalar_one()
        page_stmt = (
            stmt.order_by(Transcription.created_at.desc(), Transcription.id.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self._session.execute(page_stmt)).scalars().all()
        return list(rows), total

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        audio_file_name: str,
        transcription_text: str,
        language_code: str = "en-US",
        audio_file_url: str | None = None,
        audio_mime_type: str | None = None,
        audio_duration_seconds: float | None = None,
        audio_file_size_bytes: int | None = None,
        status: str = TranscriptionStatus.completed,
        confidence_score: float | None = None,
    ) -> Transcription | None:
        """Insert a transcription and return it, or ``None`` if the store failed.

        ``word_count`` is always derived from ``transcription_text``.
        """
        now = datetime.now(UTC)
        transcription = Transcription(
            audio_file_name=audio_file_name,
            audio_file_url=audio_file_url,
            audio_mime_type=audio_mime_type,
            audio_duration_seconds=audio_duration_seconds,
            audio_file_size_bytes=audio_file_size_bytes,
            transcription_text=transcription_text,
            language_code=language_code,
            status=status,
            confidence_score=confidence_score,
            word_count=count_words(transcription_text),
            created_at=now,
            updated_at=now,
        )
        try:
            self._session.add(transcription)
            await self._session.flush()
        except SQLAlchemyError:
            logger.exception("Create transcription failed for %s", audio_file_name)
            await self._session.rollback()
            return None
        return transcription

    async def update(self, transcription_id: str, **changes: object) -> Transcription | None:
        """Apply *changes* to an active row and return it.

        ``word_count`` is recomputed only when ``transcription_text`` is part
        of *changes*; ``updated_at`` is always bumped. Unknown keys are
        ignored.

        Returns:
            The updated row, or ``None`` if no active row matched or the
            store failed.
        """
        values = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if "transcription_text" in values:
            values["word_count"] = count_words(values["transcription_text"])
        values["updated_at"] = datetime.now(UTC)

        stmt = (
            update(Transcription)
            .where(Transcription.id == transcription_id, Transcription.deleted_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
            if result.rowcount == 0:
                return None
            await self._session.flush()
        except SQLAlchemyError:
            logger.exception("Update transcription %s failed", transcription_id)
            await self._session.rollback()
            return None
        return await self.find_by_id(transcription_id, refresh=True)

    async def soft_delete(self, transcription_id: str) -> bool:
        """Mark an active row deleted.

        Not idempotent: a second call finds no active row and returns False.
        """
        now = datetime.now(UTC)
        stmt = (
            update(Transcription)
            .where(Transcription.id == transcription_id, Transcription.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
            await self._session.flush()
        except SQLAlchemyError:
            logger.exception("Soft delete transcription %s failed", transcription_id)
            await self._session.rollback()
            return False
        return result.rowcount > 0

    async def hard_delete(self, transcription_id: str) -> bool:
        """Physically remove a row, deleted or not. The audio blob is left alone."""
        stmt = delete(Transcription).where(Transcription.id == transcription_id)
        try:
            result = await self._session.execute(stmt)
            await self._session.flush()
        except SQLAlchemyError:
            logger.exception("Hard delete transcription %s failed", transcription_id)
            await self._session.rollback()
            return False
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, transcription_id: str, refresh: bool = False) -> Transcription | None:
        """Return the active row with *transcription_id*, or ``None``."""
        stmt = self._active().where(Transcription.id == transcription_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(self, limit: int = 20, offset: int = 0) -> tuple[list[Transcription], int]:
        """Return one page of active rows (newest first) and the active total."""
        return await self._page(self._active(), limit, offset)

    async def search(
        self, term: str, limit: int = 20, offset: int = 0
    ) -> tuple[list[Transcription], int]:
        """Case-insensitive substring search over ``transcription_text``."""
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        stmt = self._active().where(
            Transcription.transcription_text.ilike(f"%{escaped}%", escape="\\")
        )
        return await self._page(stmt, limit, offset)
