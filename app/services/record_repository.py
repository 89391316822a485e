"""Repository helpers for classroom records and class rosters."""

from __future__ import annotations

import logging
from typing import Any, AsyncContextManager, Callable, Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.record import ClassroomRecord
from app.models.student import Student

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when a write-back targets a record id that does not exist."""


SessionOpener = Callable[[], AsyncContextManager[AsyncSession]]


def _default_factory() -> SessionOpener:
    from app.database import session_scope

    return session_scope


async def update_record_analysis(
    record_id: str,
    *,
    transcription: str | None,
    taxonomy_codes: Sequence[str],
    ai_metadata: Mapping[str, Any],
    session_factory: SessionOpener | None = None,
) -> None:
    """Store the analysis fields on ``registros``; other columns are untouched.

    ``transcription`` is only written when given, so photo and video analyses
    keep whatever transcript the record already had.
    """

    factory = session_factory or _default_factory()
    async with factory() as session:
        result = await session.execute(
            select(ClassroomRecord).where(ClassroomRecord.id == record_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError(f"Registro {record_id} não encontrado.")

        if transcription is not None:
            record.voice_transcript = transcription
        record.taxonomy_codes = list(taxonomy_codes)
        record.ai_metadata = dict(ai_metadata)
        await session.commit()

    logger.info("Análise gravada no registro=%s tags=%s", record_id, list(taxonomy_codes))


async def fetch_class_roster(
    class_id: str,
    *,
    session_factory: SessionOpener | None = None,
) -> list[tuple[str, str]]:
    """Return ``(id, name)`` for the active students of a class, by name."""

    factory = session_factory or _default_factory()
    async with factory() as session:
        result = await session.execute(
            select(Student.id, Student.name)
            .where(Student.class_id == class_id, Student.active.is_(True))
            .order_by(Student.name)
        )
        rows = result.all()

    logger.debug("Turma %s com %s alunos ativos", class_id, len(rows))
    return [(str(student_id), name) for student_id, name in rows]


__all__ = ["RecordNotFoundError", "fetch_class_roster", "update_record_analysis"]
