"""Model invocation stage for the media analysis pipeline."""

from __future__ import annotations

import asyncio
import logging

from app.config.settings import settings
from app.services.llm_client import LlmInvocationError, MediaModelClient

from .errors import ModelUnavailableError
from .types import LoadedMedia, MediaKind, PromptSpec

logger = logging.getLogger("app.pipelines.media")

# Used when the loader could not determine a content type.
_FALLBACK_CONTENT_TYPES = {
    MediaKind.AUDIO: "audio/webm",
    MediaKind.IMAGE: "image/jpeg",
    MediaKind.VIDEO: "video/mp4",
}
_UNKNOWN_CONTENT_TYPES = {"", "application/octet-stream"}


def truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


def effective_content_type(media: LoadedMedia, kind: MediaKind) -> str:
    """Content type sent to the model, falling back to a per-kind default."""

    content_type = (media.content_type or "").strip().lower()
    if content_type in _UNKNOWN_CONTENT_TYPES:
        return _FALLBACK_CONTENT_TYPES[MediaKind(kind)]
    return content_type


async def call_media_model(
    client: MediaModelClient,
    prompt: PromptSpec,
    media: LoadedMedia,
    kind: MediaKind,
    *,
    timeout_seconds: float | None = None,
) -> str:
    """Send prompt + media to the model once and return its raw text reply."""

    timeout = timeout_seconds if timeout_seconds is not None else settings.model.timeout_seconds
    content_type = effective_content_type(media, kind)

    try:
        raw_response = await asyncio.wait_for(
            client.invoke(
                instruction_text=prompt.instruction_text,
                media_bytes=media.data,
                content_type=content_type,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        raise ModelUnavailableError(
            f"O modelo não respondeu em {timeout:.0f}s."
        ) from exc
    except LlmInvocationError as exc:
        raise ModelUnavailableError(f"Falha ao invocar o modelo: {exc}") from exc
    except Exception as exc:  # any client failure is the model boundary failing
        raise ModelUnavailableError(f"Erro inesperado do cliente do modelo: {exc!r}") from exc

    if not raw_response or not raw_response.strip():
        raise ModelUnavailableError("O modelo devolveu uma resposta vazia.")

    logger.info(
        "Resposta bruta do modelo kind=%s content_type=%s: %s",
        MediaKind(kind).value,
        content_type,
        truncate(raw_response),
    )
    return raw_response


__all__ = ["call_media_model", "effective_content_type", "truncate"]
