"""Service layer helpers for external integrations."""

from .llm_client import (
    BedrockMediaClient,
    GeminiMediaClient,
    LlmInvocationError,
    MediaModelClient,
    get_media_model_client,
)
from .record_repository import (
    RecordNotFoundError,
    fetch_class_roster,
    update_record_analysis,
)

__all__ = [
    "BedrockMediaClient",
    "GeminiMediaClient",
    "LlmInvocationError",
    "MediaModelClient",
    "get_media_model_client",
    "RecordNotFoundError",
    "fetch_class_roster",
    "update_record_analysis",
]
