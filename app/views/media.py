"""Pydantic schemas for the media processing endpoint.

Field names follow the JSON contract the web client already speaks
(``registro_id``, ``turma_id``, ``tags_bncc``...).
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.pipelines.media import AnalysisResult, MediaKind


class StudentInfo(BaseModel):
    id: str = Field(..., min_length=1)
    nome: str


class ProcessMediaRequest(BaseModel):
    """Body accepted by ``POST /media/process``."""

    media_url: str = Field(..., min_length=1, description="data: URL, http(s) URL or s3:// locator")
    media_type: MediaKind
    registro_id: Optional[str] = None
    turma_id: Optional[str] = None
    students: List[StudentInfo] = Field(default_factory=list)


class AiMetadata(BaseModel):
    confidence: float
    detected_activities: List[str] = Field(default_factory=list)
    detected_emotions: List[str] = Field(default_factory=list)
    detected_student_names: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    transcription: Optional[str] = None
    children_count: Optional[int] = None
    processed_at: datetime


class AnalysisView(BaseModel):
    transcription: Optional[str] = None
    tags_bncc: List[str]
    suggested_students: List[str]
    ai_metadata: AiMetadata

    @classmethod
    def from_result(cls, result: AnalysisResult, kind: MediaKind) -> "AnalysisView":
        metadata = result.metadata
        return cls(
            # Only audio exposes its primary text as a transcription.
            transcription=(
                result.transcription_or_description if kind is MediaKind.AUDIO else None
            ),
            tags_bncc=list(result.taxonomy_codes),
            suggested_students=list(result.resolved_student_ids),
            ai_metadata=AiMetadata(
                confidence=metadata.confidence,
                detected_activities=list(metadata.activities),
                detected_emotions=list(metadata.emotions),
                detected_student_names=list(metadata.detected_names),
                description=metadata.description,
                transcription=metadata.transcription,
                children_count=metadata.children_count,
                processed_at=metadata.processed_at_utc,
            ),
        )


class ProcessMediaResponse(BaseModel):
    success: bool = True
    analysis: AnalysisView
    persisted: bool = False


class TaxonomyFieldView(BaseModel):
    code: str
    label: str
    description: str = ""


class TaxonomyResponse(BaseModel):
    version: str
    fields: List[TaxonomyFieldView]


__all__ = [
    "AiMetadata",
    "AnalysisView",
    "ProcessMediaRequest",
    "ProcessMediaResponse",
    "StudentInfo",
    "TaxonomyFieldView",
    "TaxonomyResponse",
]
