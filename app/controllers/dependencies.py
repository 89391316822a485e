"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from functools import lru_cache

from app.config.settings import settings
from app.pipelines.media import MediaAnalysisPipeline


@lru_cache(maxsize=1)
def get_media_pipeline() -> MediaAnalysisPipeline:
    """Shared pipeline instance; it keeps no per-request state."""

    return MediaAnalysisPipeline(persist=settings.persist_analysis)


__all__ = ["get_media_pipeline"]
