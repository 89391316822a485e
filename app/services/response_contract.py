"""Pydantic models for validating the JSON the media model returns.

The model is told to answer with a bare JSON object, but partial output is
expected: absent lists become ``[]``, absent strings ``""`` and an absent
confidence falls back to ``DEFAULT_CONFIDENCE``. Type mismatches that cannot
be coerced still fail validation.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CONFIDENCE = 0.8


def _as_text_list(value: Any) -> Any:
    """Accept a bare string or a list of scalars; drop nulls and blanks."""

    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return value
    items: list[str] = []
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


class MediaPayload(BaseModel):
    """Fields shared by every kind of media analysis."""

    taxonomy_codes: List[str] = Field(default_factory=list, alias="tags_bncc")
    detected_activities: List[str] = Field(default_factory=list)
    confidence: float = DEFAULT_CONFIDENCE

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("taxonomy_codes", "detected_activities", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return _as_text_list(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_CONFIDENCE
        return value

    @model_validator(mode="after")
    def _clamp_confidence(self) -> "MediaPayload":
        confidence = float(self.confidence)
        if not math.isfinite(confidence):
            confidence = DEFAULT_CONFIDENCE
        self.confidence = max(0.0, min(1.0, confidence))
        return self

    def primary_text(self) -> str:
        """Text stored as the record's transcription or description."""
        return ""


class AudioPayload(MediaPayload):
    transcription: str = ""
    detected_names: List[str] = Field(default_factory=list, alias="detected_student_names")
    detected_emotions: List[str] = Field(default_factory=list)

    @field_validator("detected_names", "detected_emotions", mode="before")
    @classmethod
    def _coerce_speech_lists(cls, value: Any) -> Any:
        return _as_text_list(value)

    @field_validator("transcription", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def primary_text(self) -> str:
        return self.transcription


class ImagePayload(MediaPayload):
    description: str = ""
    children_count: Optional[int] = None

    @field_validator("description", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("children_count", mode="before")
    @classmethod
    def _lenient_count(cls, value: Any) -> Any:
        # A count the model could not express as a number is simply unknown.
        if value is None or isinstance(value, bool):
            return None
        try:
            count = int(value)
        except (TypeError, ValueError):
            return None
        return count if count >= 0 else None

    def primary_text(self) -> str:
        return self.description


class VideoPayload(ImagePayload):
    transcription: str = ""
    detected_names: List[str] = Field(default_factory=list, alias="detected_student_names")
    detected_emotions: List[str] = Field(default_factory=list)

    @field_validator("detected_names", "detected_emotions", mode="before")
    @classmethod
    def _coerce_speech_lists(cls, value: Any) -> Any:
        return _as_text_list(value)

    @field_validator("transcription", mode="before")
    @classmethod
    def _none_transcription(cls, value: Any) -> Any:
        return "" if value is None else value

    def primary_text(self) -> str:
        return self.description or self.transcription


def locate_json_object(payload: str) -> str | None:
    """Return the span from the first ``{`` to the last ``}``, or None."""

    if not payload:
        return None

    start = payload.find("{")
    end = payload.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return payload[start : end + 1]


__all__ = [
    "DEFAULT_CONFIDENCE",
    "AudioPayload",
    "ImagePayload",
    "MediaPayload",
    "VideoPayload",
    "locate_json_object",
]
