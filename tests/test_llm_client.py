"""Tests for the model clients and content-type handling."""

from __future__ import annotations

import base64

import pytest

from app.pipelines.media import LoadedMedia, MediaKind
from app.pipelines.media.llm import effective_content_type
from app.services.llm_client import (
    GeminiMediaClient,
    LlmInvocationError,
    _decode_bedrock_api_key,
    bedrock_media_block,
)


@pytest.mark.parametrize(
    "content_type, kind, expected",
    [
        ("image/png", MediaKind.IMAGE, "image/png"),
        ("", MediaKind.AUDIO, "audio/webm"),
        ("application/octet-stream", MediaKind.VIDEO, "video/mp4"),
        ("application/octet-stream", MediaKind.IMAGE, "image/jpeg"),
    ],
)
def test_effective_content_type(content_type, kind, expected):
    media = LoadedMedia(data=b"x", content_type=content_type)

    assert effective_content_type(media, kind) == expected


def test_bedrock_image_block():
    block = bedrock_media_block(b"img", "image/jpg")

    assert block == {"image": {"format": "jpeg", "source": {"bytes": b"img"}}}


def test_bedrock_video_block():
    block = bedrock_media_block(b"vid", "video/quicktime")

    assert block["video"]["format"] == "mov"


@pytest.mark.parametrize("content_type", ["audio/webm", "image/tiff", ""])
def test_bedrock_rejects_unsupported_media(content_type):
    with pytest.raises(LlmInvocationError):
        bedrock_media_block(b"x", content_type)


def test_decode_bedrock_api_key():
    secret = base64.b64encode(b"AKIA123:s3cr3t").decode()

    assert _decode_bedrock_api_key(secret) == ("AKIA123", "s3cr3t")
    assert _decode_bedrock_api_key("") is None


async def test_gemini_client_without_key_returns_nothing(monkeypatch):
    from app.services import llm_client

    monkeypatch.setattr(llm_client.settings.gemini, "api_key", None)
    client = GeminiMediaClient()

    reply = await client.invoke(
        instruction_text="descreva", media_bytes=b"x", content_type="image/png"
    )

    assert reply is None


def test_raw_output_truncation_is_shared_with_the_orchestrator():
    from app.pipelines.media import flow, llm

    assert flow.truncate is llm.truncate
    assert llm.truncate("a" * 600, max_length=10) == "aaaaaaa..."
    assert llm.truncate("short") == "short"
