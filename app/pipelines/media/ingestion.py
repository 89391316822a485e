"""Media loading stage: turn a media reference into (bytes, content type).

Supported references:
* ``EmbeddedMedia`` – base64 payload plus declared content type (usually
  parsed from a ``data:<mime>;base64,<payload>`` URL).
* ``RemoteMedia`` with an ``http(s)://`` locator – fetched with httpx.
* ``RemoteMedia`` with an ``s3://bucket/key`` locator – read with boto3.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Final
from urllib.parse import urlparse

import httpx
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.config.settings import settings
from app.services.aws import get_s3_client

from .errors import MalformedMediaError, MediaFetchError
from .types import EmbeddedMedia, LoadedMedia, MediaReference, RemoteMedia

logger = logging.getLogger("app.pipelines.media")

DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"
# MIME parameters (";codecs=opus") may precede the base64 marker.
_DATA_URL_PATTERN: Final = re.compile(
    r"^data:([^;,]+)(?:;[^;,=]+=[^;,]*)*;base64,(.+)$", re.DOTALL
)


def media_reference_from_url(url: str) -> MediaReference:
    """Classify a client-supplied URL as embedded (data URL) or remote."""

    cleaned = (url or "").strip()
    if not cleaned:
        raise MalformedMediaError("media_url vazia.")
    if cleaned.startswith("data:"):
        match = _DATA_URL_PATTERN.match(cleaned)
        if not match:
            raise MalformedMediaError("Formato de data URL inválido.")
        return EmbeddedMedia(base64_payload=match.group(2), declared_content_type=match.group(1))
    return RemoteMedia(locator=cleaned)


def normalize_content_type(value: str | None) -> str:
    """Drop parameters (``; charset=...``) and lower-case the MIME type."""

    if not value:
        return DEFAULT_CONTENT_TYPE
    main = value.split(";", 1)[0].strip().lower()
    return main or DEFAULT_CONTENT_TYPE


def _check_size(size: int, error_cls: type[MalformedMediaError] | type[MediaFetchError]) -> None:
    limit = settings.media.max_bytes
    if size > limit:
        raise error_cls(f"Mídia com {size} bytes excede o limite de {limit} bytes.")


def decode_embedded(ref: EmbeddedMedia) -> LoadedMedia:
    """Decode an inline base64 payload, rejecting malformed or empty data."""

    payload = re.sub(r"\s+", "", ref.base64_payload or "")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedMediaError(f"Payload base64 inválido: {exc}") from exc

    if not data:
        raise MalformedMediaError("Payload de mídia vazio.")
    _check_size(len(data), MalformedMediaError)
    return LoadedMedia(data=data, content_type=normalize_content_type(ref.declared_content_type))


async def fetch_http(
    locator: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LoadedMedia:
    """Download media over HTTP(S); any network or status failure is fatal."""

    async with httpx.AsyncClient(
        timeout=settings.media.fetch_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    ) as client:
        try:
            response = await client.get(locator)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MediaFetchError(
                f"Falha ao baixar mídia (HTTP {exc.response.status_code}): {locator}"
            ) from exc
        except httpx.RequestError as exc:
            raise MediaFetchError(f"Não foi possível baixar a mídia: {exc}") from exc

    data = response.content
    if not data:
        raise MediaFetchError(f"Mídia remota vazia: {locator}")
    _check_size(len(data), MediaFetchError)
    return LoadedMedia(
        data=data,
        content_type=normalize_content_type(response.headers.get("content-type")),
    )


async def fetch_s3(locator: str) -> LoadedMedia:
    """Read an ``s3://bucket/key`` object with the shared boto3 client."""

    parsed = urlparse(locator)
    bucket, key = parsed.netloc, parsed.path.lstrip("/")
    if not bucket or not key:
        raise MediaFetchError(f"Locator S3 inválido: {locator}")

    def _read() -> tuple[bytes, str | None]:
        response = get_s3_client().get_object(Bucket=bucket, Key=key)
        return response["Body"].read(), response.get("ContentType")

    try:
        data, content_type = await run_in_threadpool(_read)
    except (BotoCoreError, ClientError) as exc:
        raise MediaFetchError(f"Falha ao ler mídia do S3: {exc}") from exc

    if not data:
        raise MediaFetchError(f"Objeto S3 vazio: {locator}")
    _check_size(len(data), MediaFetchError)
    return LoadedMedia(data=data, content_type=normalize_content_type(content_type))


async def load_media(
    ref: MediaReference,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LoadedMedia:
    """Resolve ``ref`` into bytes plus content type."""

    if isinstance(ref, EmbeddedMedia):
        return decode_embedded(ref)

    if not isinstance(ref, RemoteMedia):
        raise MalformedMediaError(f"Referência de mídia desconhecida: {type(ref).__name__}")

    scheme = urlparse(ref.locator).scheme.lower()
    if scheme in ("http", "https"):
        media = await fetch_http(ref.locator, transport=transport)
    elif scheme == "s3":
        media = await fetch_s3(ref.locator)
    else:
        raise MediaFetchError(f"Esquema de URL não suportado: {scheme or '<vazio>'}")

    logger.info(
        "Mídia remota carregada locator=%s bytes=%s content_type=%s",
        ref.locator,
        len(media.data),
        media.content_type,
    )
    return media


__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "decode_embedded",
    "fetch_http",
    "fetch_s3",
    "load_media",
    "media_reference_from_url",
    "normalize_content_type",
]
