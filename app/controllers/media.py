"""Media analysis endpoints.

For a stage-by-stage map see `app.pipelines.media.flow.MediaAnalysisPipeline`.
`POST /media/process` performs:

1. Roster lookup (students from the body, or the active students of `turma_id`).
2. Media loading, prompt assembly and the multimodal model call.
3. Payload extraction, BNCC tagging and student name resolution.
4. Optional write-back to `registros` when `registro_id` is present.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from app.controllers.dependencies import get_media_pipeline
from app.pipelines.media import (
    AnalysisRequest,
    MediaAnalysisPipeline,
    MediaPipelineError,
    StudentRef,
    get_taxonomy,
    media_reference_from_url,
)
from app.services.record_repository import fetch_class_roster
from app.telemetry import observe_analysis
from app.views.common import ErrorResponse
from app.views.media import (
    AnalysisView,
    ProcessMediaRequest,
    ProcessMediaResponse,
    TaxonomyFieldView,
    TaxonomyResponse,
)

router = APIRouter(prefix="/media", tags=["media"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(MediaAnalysisPipeline.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

PipelineDep = Annotated[MediaAnalysisPipeline, Depends(get_media_pipeline)]

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed media payload"},
    502: {"model": ErrorResponse, "description": "Media fetch, model or payload failure"},
}


async def _resolve_roster(body: ProcessMediaRequest) -> tuple[StudentRef, ...]:
    """Use the students sent by the client, falling back to the class roster."""

    if body.students:
        return tuple(StudentRef(id=s.id, display_name=s.nome) for s in body.students)
    if not body.turma_id:
        return ()

    try:
        rows = await fetch_class_roster(body.turma_id)
    except Exception as exc:
        # Name resolution simply finds nobody when the roster is unavailable.
        logger.warning("Não foi possível carregar a turma=%s: %s", body.turma_id, exc)
        return ()
    return tuple(StudentRef(id=student_id, display_name=name) for student_id, name in rows)


@router.post(
    "/process",
    response_model=ProcessMediaResponse,
    responses=_ERROR_RESPONSES,
)
async def process_media(
    body: ProcessMediaRequest,
    pipeline: PipelineDep,
) -> ProcessMediaResponse:
    """Analyze an audio clip, photo or video and optionally update its record."""

    try:
        media = media_reference_from_url(body.media_url)
    except MediaPipelineError as exc:
        observe_analysis(body.media_type.value, exc.code)
        raise exc.at_stage("loading")

    roster = await _resolve_roster(body)
    logger.info(
        "Processando mídia kind=%s registro=%s turma=%s alunos=%s",
        body.media_type.value,
        body.registro_id,
        body.turma_id,
        len(roster),
    )

    run = await pipeline.execute(
        AnalysisRequest(
            media=media,
            kind=body.media_type,
            roster=roster,
            record_id=body.registro_id,
        )
    )
    if run.error is not None:
        raise run.error
    assert run.result is not None

    if run.persistence_error is not None:
        logger.warning(
            "Análise devolvida sem gravação registro=%s: %s",
            body.registro_id,
            run.persistence_error,
        )

    return ProcessMediaResponse(
        success=True,
        analysis=AnalysisView.from_result(run.result, body.media_type),
        persisted=run.persisted,
    )


@router.get("/taxonomy", response_model=TaxonomyResponse)
async def get_taxonomy_fields() -> TaxonomyResponse:
    """List the BNCC fields the model classifies media against."""

    taxonomy = get_taxonomy()
    return TaxonomyResponse(
        version=taxonomy.version,
        fields=[
            TaxonomyFieldView(code=item.code, label=item.label, description=item.description)
            for item in taxonomy
        ],
    )
