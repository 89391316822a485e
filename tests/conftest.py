"""Shared fixtures: environment defaults, fake model client and record sink."""

from __future__ import annotations

import asyncio
import base64
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

_LOG_DIR = Path(tempfile.gettempdir()) / "floresce-tests"
os.environ.setdefault("DB_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_FILE", str(_LOG_DIR / "app.log"))
os.environ.setdefault("PIPELINE_LOG_FILE", str(_LOG_DIR / "media_pipeline.log"))
os.environ.setdefault("MODEL_TIMEOUT_SECONDS", "5")

from app.pipelines.media import EmbeddedMedia, StudentRef  # noqa: E402

FIXED_NOW = datetime(2025, 3, 14, 12, 30, tzinfo=timezone.utc)


class FakeModelClient:
    """Stands in for Gemini/Bedrock; records every call it receives."""

    def __init__(self, reply: str | None = None, *, error: Exception | None = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def invoke(self, *, instruction_text: str, media_bytes: bytes, content_type: str):
        self.calls.append(
            {
                "instruction_text": instruction_text,
                "media_bytes": media_bytes,
                "content_type": content_type,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class RecordingSink:
    """In-memory persistence sink; optionally fails every write."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.updates: list[tuple] = []

    async def update(self, record_id, update, kind):
        if self.error is not None:
            raise self.error
        self.updates.append((record_id, update, kind))


def embedded(data: bytes = b"fake-media-bytes", content_type: str = "audio/webm") -> EmbeddedMedia:
    return EmbeddedMedia(
        base64_payload=base64.b64encode(data).decode("ascii"),
        declared_content_type=content_type,
    )


@pytest.fixture
def roster() -> tuple[StudentRef, ...]:
    return (
        StudentRef(id="s1", display_name="Ana Beatriz Silva"),
        StudentRef(id="s2", display_name="Pedro Costa"),
        StudentRef(id="s3", display_name="João Müller"),
    )


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
