"""Structured result extraction stage.

The model is asked for a bare JSON object but may wrap it in prose or a
Markdown fence. :func:`parse_payload` finds the outermost ``{...}`` span,
decodes it and validates it against the kind-specific contract. It never
raises: callers get an :class:`ExtractionResult` holding either the payload
or the error, so malformed model output cannot slip through unhandled.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Type

from pydantic import ValidationError

from app.services.response_contract import (
    AudioPayload,
    ImagePayload,
    MediaPayload,
    VideoPayload,
    locate_json_object,
)

from .errors import ExtractionError, NoStructuredPayloadFound, PayloadParseError
from .types import MediaKind

PAYLOAD_MODELS: dict[MediaKind, Type[MediaPayload]] = {
    MediaKind.AUDIO: AudioPayload,
    MediaKind.IMAGE: ImagePayload,
    MediaKind.VIDEO: VideoPayload,
}


@dataclass(frozen=True)
class ExtractionResult:
    payload: MediaPayload | None = None
    error: ExtractionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> MediaPayload:
        """Return the payload or raise the stored error."""

        if self.error is not None:
            raise self.error
        assert self.payload is not None
        return self.payload


def parse_payload(raw_text: str, kind: MediaKind) -> ExtractionResult:
    """Decode the model reply into the payload contract for ``kind``."""

    span = locate_json_object(raw_text or "")
    if span is None:
        return ExtractionResult(
            error=NoStructuredPayloadFound("A resposta do modelo não contém um objeto JSON.")
        )

    try:
        data = json.loads(span)
    except json.JSONDecodeError as exc:
        error = PayloadParseError(f"JSON inválido na resposta do modelo: {exc}")
        error.__cause__ = exc
        return ExtractionResult(error=error)

    if not isinstance(data, dict):
        return ExtractionResult(
            error=PayloadParseError("A resposta do modelo não é um objeto JSON.")
        )

    model = PAYLOAD_MODELS[MediaKind(kind)]
    try:
        payload = model.model_validate(data)
    except ValidationError as exc:
        error = PayloadParseError(
            f"Resposta do modelo fora do contrato {model.__name__}: {exc.error_count()} erro(s)"
        )
        error.__cause__ = exc
        return ExtractionResult(error=error)

    return ExtractionResult(payload=payload)


def extract_payload(raw_text: str, kind: MediaKind) -> MediaPayload:
    """Raising convenience wrapper around :func:`parse_payload`."""

    return parse_payload(raw_text, kind).unwrap()


__all__ = ["ExtractionResult", "PAYLOAD_MODELS", "extract_payload", "parse_payload"]
