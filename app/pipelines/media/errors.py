"""Error taxonomy for the media analysis pipeline.

Every failure leaving the pipeline is a :class:`MediaPipelineError` carrying a
stable ``code`` plus the ``stage`` in which it happened. The underlying
library exception (httpx, botocore, google-genai, json) is always chained as
``__cause__`` and never escapes on its own.
"""

from __future__ import annotations


class MediaPipelineError(RuntimeError):
    """Base class for every failure surfaced by the media pipeline."""

    code = "media_pipeline_error"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage

    def at_stage(self, stage: str) -> "MediaPipelineError":
        """Tag the error with the stage that raised it (first tag wins)."""

        if self.stage is None:
            self.stage = stage
        return self

    def to_dict(self) -> dict[str, str | None]:
        return {"detail": str(self), "code": self.code, "stage": self.stage}


class MalformedMediaError(MediaPipelineError):
    """Embedded media payload could not be decoded."""

    code = "malformed_media"


class MediaFetchError(MediaPipelineError):
    """Remote media could not be fetched (network, HTTP or storage failure)."""

    code = "media_fetch_failed"


class ModelUnavailableError(MediaPipelineError):
    """The generative model call failed, timed out or returned no text."""

    code = "model_unavailable"


class ExtractionError(MediaPipelineError):
    """The model replied but the reply does not hold a usable payload."""

    code = "extraction_failed"


class NoStructuredPayloadFound(ExtractionError):
    code = "no_structured_payload"


class PayloadParseError(ExtractionError):
    code = "payload_parse_error"


class PersistenceWriteError(MediaPipelineError):
    """Write-back of an analysis to the record store failed."""

    code = "persistence_write_failed"


__all__ = [
    "MediaPipelineError",
    "MalformedMediaError",
    "MediaFetchError",
    "ModelUnavailableError",
    "ExtractionError",
    "NoStructuredPayloadFound",
    "PayloadParseError",
    "PersistenceWriteError",
]
