"""Write-back of a finished analysis to the record store.

A failed write-back never fails the analysis itself: the error is logged,
counted in ``media_persistence_failures_total`` and returned to the caller
so it can be monitored independently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from app.services.record_repository import update_record_analysis
from app.telemetry import increment_persistence_failure

from .errors import PersistenceWriteError
from .types import AnalysisResult, MediaKind

logger = logging.getLogger("app.pipelines.media")


@dataclass(frozen=True)
class RecordUpdate:
    """Fields of a stored record that an analysis is allowed to change."""

    transcription_or_description: str | None
    taxonomy_codes: tuple[str, ...]
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "RecordUpdate":
        return cls(
            transcription_or_description=result.transcription_or_description,
            taxonomy_codes=result.taxonomy_codes,
            metadata=result.metadata.to_dict(),
        )


class RecordSink(Protocol):
    async def update(self, record_id: str, update: RecordUpdate, kind: MediaKind) -> None:
        ...


class DatabaseRecordSink:
    """Persist analyses into ``registros`` through SQLAlchemy."""

    async def update(self, record_id: str, update: RecordUpdate, kind: MediaKind) -> None:
        # Only audio text is a transcript; descriptions stay in ai_metadata.
        transcription = (
            update.transcription_or_description if MediaKind(kind) is MediaKind.AUDIO else None
        )
        await update_record_analysis(
            record_id,
            transcription=transcription,
            taxonomy_codes=update.taxonomy_codes,
            ai_metadata=update.metadata,
        )


async def persist_analysis(
    sink: RecordSink,
    record_id: str,
    result: AnalysisResult,
    kind: MediaKind,
) -> PersistenceWriteError | None:
    """Write ``result`` to ``record_id``; return the error instead of raising."""

    try:
        await sink.update(record_id, RecordUpdate.from_result(result), kind)
    except Exception as exc:
        error = PersistenceWriteError(
            f"Falha ao gravar análise no registro {record_id}: {exc}",
            stage="persisting",
        )
        error.__cause__ = exc
        logger.error("Erro ao atualizar registro=%s: %s", record_id, exc, exc_info=exc)
        increment_persistence_failure()
        return error
    return None


__all__ = ["DatabaseRecordSink", "RecordSink", "RecordUpdate", "persist_analysis"]
