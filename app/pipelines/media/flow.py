"""Orchestration of the media analysis pipeline.

Each invocation walks a linear state machine::

    idle → loading → prompting → invoking → extracting
         → resolving (audio/video only) → assembling
         → persisting (only with a record id) → done

Any stage may jump to ``failed``; the error is tagged with the stage name and
nothing is persisted. There are no retries: callers that need resilience wrap
the whole run. Per-run state lives in :class:`PipelineRun`, so a single
:class:`MediaAnalysisPipeline` can serve concurrent requests.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Iterable, List

from app.services.llm_client import MediaModelClient, get_media_model_client
from app.telemetry import observe_analysis, observe_stage

from .assembly import assemble_result
from .errors import MediaPipelineError, PersistenceWriteError
from .extraction import parse_payload
from .ingestion import load_media
from .llm import call_media_model, truncate
from .names import resolve_participants
from .persistence import DatabaseRecordSink, RecordSink, persist_analysis
from .prompts import build_prompt
from .taxonomy import TaxonomyRegistry, get_taxonomy
from .types import (
    AnalysisRequest,
    AnalysisResult,
    LoadedMedia,
    MediaKind,
    MediaReference,
    PipelineState,
)

logger = logging.getLogger("app.pipelines.media")

MediaLoader = Callable[[MediaReference], Awaitable[LoadedMedia]]


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the media pipeline."""

    order: int
    state: PipelineState
    module: str
    summary: str


@dataclass
class PipelineRun:
    """Trace and outcome of a single pipeline invocation."""

    request: AnalysisRequest
    states: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    result: AnalysisResult | None = None
    error: MediaPipelineError | None = None
    persistence_error: PersistenceWriteError | None = None

    @property
    def state(self) -> PipelineState:
        return self.states[-1]

    @property
    def persisted(self) -> bool:
        return (
            self.request.record_id is not None
            and PipelineState.PERSISTING in self.states
            and self.persistence_error is None
        )

    def advance(self, state: PipelineState) -> None:
        self.states.append(state)

    def fail(self, error: MediaPipelineError) -> None:
        self.error = error
        self.states.append(PipelineState.FAILED)


class MediaAnalysisPipeline:
    """Run media analyses and document the stage order."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            PipelineState.LOADING,
            "app.pipelines.media.ingestion",
            "Decode the embedded payload or fetch the remote media (http/s3).",
        ),
        PipelineStage(
            2,
            PipelineState.PROMPTING,
            "app.pipelines.media.prompts",
            "Render the kind-specific instruction with taxonomy and roster names.",
        ),
        PipelineStage(
            3,
            PipelineState.INVOKING,
            "app.pipelines.media.llm",
            "Send instruction + media to the configured model (Gemini or Bedrock).",
        ),
        PipelineStage(
            4,
            PipelineState.EXTRACTING,
            "app.pipelines.media.extraction",
            "Locate and validate the JSON payload inside the model reply.",
        ),
        PipelineStage(
            5,
            PipelineState.RESOLVING,
            "app.pipelines.media.names",
            "Match detected names against the roster (audio and video only).",
        ),
        PipelineStage(
            6,
            PipelineState.ASSEMBLING,
            "app.pipelines.media.assembly",
            "Deduplicate taxonomy codes and stamp metadata with the caller's clock.",
        ),
        PipelineStage(
            7,
            PipelineState.PERSISTING,
            "app.pipelines.media.persistence",
            "Write transcript, tags and metadata back to the record when an id is given.",
        ),
    ]

    def __init__(
        self,
        *,
        model_client: MediaModelClient | None = None,
        record_sink: RecordSink | None = None,
        taxonomy: TaxonomyRegistry | None = None,
        media_loader: MediaLoader | None = None,
        persist: bool = True,
    ) -> None:
        self._model_client = model_client
        self._record_sink = record_sink or DatabaseRecordSink()
        self._taxonomy = taxonomy
        self._media_loader: MediaLoader = media_loader or load_media
        self._persist = persist

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)

    @property
    def taxonomy(self) -> TaxonomyRegistry:
        return self._taxonomy or get_taxonomy()

    def _client(self) -> MediaModelClient:
        return self._model_client or get_media_model_client()

    @asynccontextmanager
    async def _stage(self, run: PipelineRun, state: PipelineState) -> AsyncIterator[None]:
        run.advance(state)
        started = time.perf_counter()
        try:
            yield
        except MediaPipelineError as exc:
            raise exc.at_stage(state.value)
        except Exception as exc:
            raise MediaPipelineError(
                f"Erro inesperado na etapa {state.value}: {exc}",
                stage=state.value,
            ) from exc
        finally:
            observe_stage(state.value, time.perf_counter() - started)

    async def execute(self, request: AnalysisRequest) -> PipelineRun:
        """Run the pipeline; failures are recorded on the returned run."""

        run = PipelineRun(request=request)
        kind = MediaKind(request.kind)
        roster = tuple(request.roster)

        try:
            async with self._stage(run, PipelineState.LOADING):
                media = await self._media_loader(request.media)

            async with self._stage(run, PipelineState.PROMPTING):
                prompt = build_prompt(kind, roster, taxonomy=self.taxonomy)

            async with self._stage(run, PipelineState.INVOKING):
                raw_response = await call_media_model(self._client(), prompt, media, kind)

            async with self._stage(run, PipelineState.EXTRACTING):
                extraction = parse_payload(raw_response, kind)
                if not extraction.ok:
                    logger.warning(
                        "Resposta do modelo sem payload válido kind=%s: %s",
                        kind.value,
                        truncate(raw_response),
                    )
                payload = extraction.unwrap()

            resolved_ids: list[str] = []
            if kind.carries_speech:
                async with self._stage(run, PipelineState.RESOLVING):
                    resolved_ids = resolve_participants(
                        getattr(payload, "detected_names", ()),
                        roster,
                    )

            async with self._stage(run, PipelineState.ASSEMBLING):
                result = assemble_result(payload, resolved_ids, request.clock())
        except MediaPipelineError as exc:
            run.fail(exc)
            logger.error(
                "Falha no pipeline de mídia kind=%s etapa=%s código=%s: %s",
                kind.value,
                exc.stage,
                exc.code,
                exc,
            )
            observe_analysis(kind.value, exc.code)
            return run

        run.result = result
        if request.record_id and self._persist:
            # persist_analysis returns its failure instead of raising it.
            async with self._stage(run, PipelineState.PERSISTING):
                run.persistence_error = await persist_analysis(
                    self._record_sink,
                    request.record_id,
                    result,
                    kind,
                )

        run.advance(PipelineState.DONE)
        logger.info(
            "Análise concluída kind=%s tags=%s alunos=%s confiança=%.2f",
            kind.value,
            list(result.taxonomy_codes),
            list(result.resolved_student_ids),
            result.metadata.confidence,
        )
        observe_analysis(kind.value, "ok")
        return run

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run the pipeline and return the result, raising on failure."""

        run = await self.execute(request)
        if run.error is not None:
            raise run.error
        assert run.result is not None
        return run.result


__all__ = ["MediaAnalysisPipeline", "PipelineRun", "PipelineStage"]
