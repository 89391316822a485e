"""Analysis assembly stage: merge payload, resolved ids and metadata."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from app.services.response_contract import MediaPayload

from .types import AnalysisMetadata, AnalysisResult


def dedupe(values: Iterable[str]) -> tuple[str, ...]:
    """Drop repeated values while keeping first-seen order."""

    return tuple(dict.fromkeys(values))


def assemble_result(
    payload: MediaPayload,
    resolved_ids: Sequence[str],
    now: datetime,
) -> AnalysisResult:
    """Build the immutable :class:`AnalysisResult` for one invocation."""

    description = getattr(payload, "description", None)
    transcription = getattr(payload, "transcription", None)
    metadata = AnalysisMetadata(
        confidence=payload.confidence,
        activities=tuple(payload.detected_activities),
        emotions=tuple(getattr(payload, "detected_emotions", ())),
        detected_names=tuple(getattr(payload, "detected_names", ())),
        processed_at_utc=now,
        description=description,
        # Audio keeps its transcription as the primary text; video stores it here.
        transcription=transcription if description is not None and transcription else None,
        children_count=getattr(payload, "children_count", None),
    )
    return AnalysisResult(
        transcription_or_description=payload.primary_text() or None,
        taxonomy_codes=dedupe(payload.taxonomy_codes),
        resolved_student_ids=dedupe(resolved_ids),
        metadata=metadata,
    )


__all__ = ["assemble_result", "dedupe"]
