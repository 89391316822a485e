"""Typed containers shared across the media analysis pipeline.

These dataclasses live in their own module so the stages (`ingestion`,
`prompts`, `llm`, `extraction`, `names`, `assembly`, `flow`) can import them
without creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MediaKind(str, Enum):
    """Kind of classroom media submitted for analysis."""

    AUDIO = "audio"
    IMAGE = "image"
    VIDEO = "video"

    @property
    def carries_speech(self) -> bool:
        """Audio and video may mention students by name; photos cannot."""

        return self in (MediaKind.AUDIO, MediaKind.VIDEO)


@dataclass(frozen=True)
class EmbeddedMedia:
    """Media shipped inline as a base64 string with its declared type."""

    base64_payload: str
    declared_content_type: str


@dataclass(frozen=True)
class RemoteMedia:
    """Media that must be fetched from a locator (http(s) or s3 URL)."""

    locator: str


MediaReference = Union[EmbeddedMedia, RemoteMedia]


@dataclass(frozen=True)
class LoadedMedia:
    data: bytes
    content_type: str


@dataclass(frozen=True)
class StudentRef:
    """Roster entry supplied by the caller; the pipeline never mutates it."""

    id: str
    display_name: str


@dataclass(frozen=True)
class PromptSpec:
    """Instruction handed to the model plus the JSON shape it must return."""

    instruction_text: str
    output_schema_description: str


@dataclass(frozen=True)
class AnalysisMetadata:
    confidence: float
    activities: tuple[str, ...]
    emotions: tuple[str, ...]
    detected_names: tuple[str, ...]
    processed_at_utc: datetime
    description: str | None = None
    transcription: str | None = None
    children_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the field names stored in ``registros.ai_metadata``."""

        payload: dict[str, Any] = {
            "confidence": self.confidence,
            "detected_activities": list(self.activities),
            "detected_emotions": list(self.emotions),
            "detected_student_names": list(self.detected_names),
            "processed_at": self.processed_at_utc.isoformat(),
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.transcription is not None:
            payload["transcription"] = self.transcription
        if self.children_count is not None:
            payload["children_count"] = self.children_count
        return payload


@dataclass(frozen=True)
class AnalysisResult:
    """Final, immutable output of one pipeline invocation."""

    transcription_or_description: str | None
    taxonomy_codes: tuple[str, ...]
    resolved_student_ids: tuple[str, ...]
    metadata: AnalysisMetadata


@dataclass(frozen=True)
class AnalysisRequest:
    """Everything a caller must supply to run the pipeline once."""

    media: MediaReference
    kind: MediaKind
    roster: tuple[StudentRef, ...] = ()
    record_id: str | None = None
    clock: Callable[[], datetime] = field(default=utc_now, compare=False)


class PipelineState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PROMPTING = "prompting"
    INVOKING = "invoking"
    EXTRACTING = "extracting"
    RESOLVING = "resolving"
    ASSEMBLING = "assembling"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


__all__ = [
    "AnalysisMetadata",
    "AnalysisRequest",
    "AnalysisResult",
    "EmbeddedMedia",
    "LoadedMedia",
    "MediaKind",
    "MediaReference",
    "PipelineState",
    "PromptSpec",
    "RemoteMedia",
    "StudentRef",
    "utc_now",
]
