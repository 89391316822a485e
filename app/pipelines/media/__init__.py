"""Media analysis pipeline package.

Modules are organised by the order in which `/media/process` executes:

1. `ingestion` – decode or fetch the media bytes.
2. `prompts` – build the kind-specific instruction (taxonomy + roster).
3. `llm` – call the multimodal model once, with a timeout.
4. `extraction` – pull the JSON payload out of the free-text reply.
5. `names` – normalize detected names and resolve them against the roster.
6. `assembly` – merge everything into an immutable `AnalysisResult`.
7. `persistence` – optional write-back to the stored record.
8. `flow` – the state machine tying the stages together.
"""

from .assembly import assemble_result
from .errors import (
    ExtractionError,
    MalformedMediaError,
    MediaFetchError,
    MediaPipelineError,
    ModelUnavailableError,
    NoStructuredPayloadFound,
    PayloadParseError,
    PersistenceWriteError,
)
from .extraction import ExtractionResult, extract_payload, parse_payload
from .flow import MediaAnalysisPipeline, PipelineRun, PipelineStage
from .ingestion import load_media, media_reference_from_url
from .llm import call_media_model
from .names import normalize_name, resolve_participants
from .persistence import DatabaseRecordSink, RecordSink, RecordUpdate
from .prompts import build_prompt
from .taxonomy import DEFAULT_TAXONOMY, TaxonomyField, TaxonomyRegistry, get_taxonomy
from .types import (
    AnalysisMetadata,
    AnalysisRequest,
    AnalysisResult,
    EmbeddedMedia,
    LoadedMedia,
    MediaKind,
    PipelineState,
    PromptSpec,
    RemoteMedia,
    StudentRef,
)

__all__ = [
    "AnalysisMetadata",
    "AnalysisRequest",
    "AnalysisResult",
    "DEFAULT_TAXONOMY",
    "DatabaseRecordSink",
    "EmbeddedMedia",
    "ExtractionError",
    "ExtractionResult",
    "LoadedMedia",
    "MalformedMediaError",
    "MediaAnalysisPipeline",
    "MediaFetchError",
    "MediaKind",
    "MediaPipelineError",
    "ModelUnavailableError",
    "NoStructuredPayloadFound",
    "PayloadParseError",
    "PersistenceWriteError",
    "PipelineRun",
    "PipelineStage",
    "PipelineState",
    "PromptSpec",
    "RecordSink",
    "RecordUpdate",
    "RemoteMedia",
    "StudentRef",
    "TaxonomyField",
    "TaxonomyRegistry",
    "assemble_result",
    "build_prompt",
    "call_media_model",
    "extract_payload",
    "get_taxonomy",
    "load_media",
    "media_reference_from_url",
    "normalize_name",
    "parse_payload",
    "resolve_participants",
]
