"""Thin multimodal model clients used by the media analysis pipeline.

Both clients expose the same coroutine::

    await client.invoke(instruction_text=..., media_bytes=..., content_type=...)

and return the model's aggregate text output (or ``None`` when the client is
not configured or the model produced nothing). SDK failures are re-raised as
:class:`LlmInvocationError`.
"""

from __future__ import annotations

import base64
import logging
from functools import lru_cache
from typing import Optional, Protocol

from fastapi.concurrency import run_in_threadpool
from google import genai
from google.genai import types as genai_types

from app.config.settings import settings
from app.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


class LlmInvocationError(RuntimeError):
    """Raised when the model invocation fails."""


class MediaModelClient(Protocol):
    async def invoke(
        self,
        *,
        instruction_text: str,
        media_bytes: bytes,
        content_type: str,
    ) -> str | None:
        ...


class GeminiMediaClient:
    """Invoke Google Gemini with the instruction plus inline media bytes."""

    def __init__(self, *, api_key: str | None = None, model_id: str | None = None) -> None:
        self._model_id = model_id or settings.gemini.model_id
        if api_key is None and settings.gemini.api_key:
            api_key = settings.gemini.api_key.get_secret_value()

        self._client: genai.Client | None = None
        if not api_key:
            logger.warning("GEMINI_API_KEY não configurada; análises de mídia indisponíveis.")
            return
        try:
            self._client = genai.Client(api_key=api_key)
        except Exception as exc:  # pragma: no cover - configuration issue
            logger.warning("Não foi possível inicializar o Gemini: %s", exc)

    async def invoke(
        self,
        *,
        instruction_text: str,
        media_bytes: bytes,
        content_type: str,
    ) -> str | None:
        if not self._client or not self._model_id:
            return None

        config = genai_types.GenerateContentConfig(
            temperature=settings.gemini.temperature,
            max_output_tokens=settings.gemini.max_output_tokens,
        )

        def _call() -> str:
            response = self._client.models.generate_content(
                model=self._model_id,
                contents=[
                    instruction_text,
                    genai_types.Part.from_bytes(data=media_bytes, mime_type=content_type),
                ],
                config=config,
            )
            return (response.text or "").strip()

        try:
            result = await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise LlmInvocationError(str(exc)) from exc

        return result or None


def _decode_bedrock_api_key(secret_value: Optional[str]) -> tuple[str, str] | None:
    """Decode the BEDROCK_API_KEY secret into access/secret key components."""

    if not secret_value:
        return None

    try:
        decoded_bytes = base64.b64decode(secret_value.strip())
    except ValueError:
        decoded_bytes = secret_value.encode("utf-8", "ignore")

    filtered = "".join(chr(b) for b in decoded_bytes if 31 < b < 127)
    if ":" not in filtered:
        return None
    access_key, secret_key = filtered.split(":", 1)
    return access_key, secret_key


# Formats accepted by Bedrock `converse` content blocks, keyed by MIME subtype.
_BEDROCK_IMAGE_FORMATS = {
    "jpeg": "jpeg",
    "jpg": "jpeg",
    "pjpeg": "jpeg",
    "png": "png",
    "gif": "gif",
    "webp": "webp",
}
_BEDROCK_VIDEO_FORMATS = {
    "mp4": "mp4",
    "quicktime": "mov",
    "x-matroska": "mkv",
    "webm": "webm",
    "x-flv": "flv",
    "mpeg": "mpeg",
    "x-ms-wmv": "wmv",
    "3gpp": "three_gp",
}


def bedrock_media_block(media_bytes: bytes, content_type: str) -> dict:
    """Build the `converse` content block for an image or a video."""

    major, _, subtype = (content_type or "").lower().partition("/")
    if major == "image" and subtype in _BEDROCK_IMAGE_FORMATS:
        return {"image": {"format": _BEDROCK_IMAGE_FORMATS[subtype], "source": {"bytes": media_bytes}}}
    if major == "video" and subtype in _BEDROCK_VIDEO_FORMATS:
        return {"video": {"format": _BEDROCK_VIDEO_FORMATS[subtype], "source": {"bytes": media_bytes}}}
    raise LlmInvocationError(f"Bedrock não aceita mídia do tipo {content_type!r}.")


class BedrockMediaClient:
    """Invoke Amazon Bedrock `converse` with an image or video content block."""

    def __init__(self) -> None:
        self._model_id = settings.bedrock.model_id

        api_key_tuple = None
        if settings.bedrock.api_key:
            api_key_tuple = _decode_bedrock_api_key(
                settings.bedrock.api_key.get_secret_value()
            )

        try:
            self._client = create_boto3_client(
                "bedrock-runtime",
                region_name=settings.bedrock.region,
                aws_access_key_id=api_key_tuple[0] if api_key_tuple else None,
                aws_secret_access_key=api_key_tuple[1] if api_key_tuple else None,
            )
        except Exception as exc:  # pragma: no cover - configuration issue
            logger.warning("Não foi possível inicializar o Bedrock: %s", exc)
            self._client = None

    async def invoke(
        self,
        *,
        instruction_text: str,
        media_bytes: bytes,
        content_type: str,
    ) -> str | None:
        if not self._client or not self._model_id:
            return None

        media_block = bedrock_media_block(media_bytes, content_type)
        inference_cfg = {
            "maxTokens": settings.bedrock.max_tokens,
            "temperature": settings.bedrock.temperature,
            "topP": settings.bedrock.top_p,
        }

        def _call() -> str:
            response = self._client.converse(
                modelId=self._model_id,
                messages=[
                    {
                        "role": "user",
                        "content": [media_block, {"text": instruction_text}],
                    }
                ],
                inferenceConfig=inference_cfg,
            )
            content_blocks = (
                response.get("output", {})
                .get("message", {})
                .get("content", [])
            )
            texts = [block.get("text", "") for block in content_blocks if block.get("text")]
            return "\n".join(texts).strip()

        try:
            result = await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise LlmInvocationError(str(exc)) from exc

        return result or None


@lru_cache(maxsize=1)
def get_media_model_client() -> MediaModelClient:
    """Return the client for the configured ``MODEL_PROVIDER``."""

    if settings.model.provider == "bedrock":
        return BedrockMediaClient()
    return GeminiMediaClient()


__all__ = [
    "BedrockMediaClient",
    "GeminiMediaClient",
    "LlmInvocationError",
    "MediaModelClient",
    "bedrock_media_block",
    "get_media_model_client",
]
