"""End-to-end tests for the media analysis state machine."""

from __future__ import annotations

import asyncio
import json

import pytest
from prometheus_client import REGISTRY

from app.pipelines.media import (
    AnalysisRequest,
    MalformedMediaError,
    MediaAnalysisPipeline,
    MediaKind,
    MediaPipelineError,
    ModelUnavailableError,
    NoStructuredPayloadFound,
    PersistenceWriteError,
    PipelineState,
    RemoteMedia,
    StudentRef,
)
from app.services.llm_client import LlmInvocationError

from conftest import FIXED_NOW, FakeModelClient, RecordingSink, embedded

AUDIO_REPLY = json.dumps(
    {
        "transcription": "Hoje a Ana e o Pedro Henrique pintaram juntos.",
        "tags_bncc": ["EI-TS", "EI-EO", "EI-TS"],
        "detected_student_names": ["Ana", "Pedro Henrique", "Maria"],
        "detected_activities": ["pintura"],
        "detected_emotions": ["alegria"],
        "confidence": 0.93,
    }
)

IMAGE_REPLY = (
    'Claro! {"description": "crianças montando blocos", "children_count": 5,'
    ' "tags_bncc": ["EI-ET"], "detected_activities": ["construção"], "confidence": 0.7}'
)

SPEECH_ROSTER = (
    StudentRef(id="s1", display_name="Ana Silva"),
    StudentRef(id="s2", display_name="Pedro Henrique Costa"),
)

HAPPY_AUDIO_STATES = [
    PipelineState.IDLE,
    PipelineState.LOADING,
    PipelineState.PROMPTING,
    PipelineState.INVOKING,
    PipelineState.EXTRACTING,
    PipelineState.RESOLVING,
    PipelineState.ASSEMBLING,
]


def _request(kind=MediaKind.AUDIO, *, record_id=None, roster=SPEECH_ROSTER, media=None, clock):
    return AnalysisRequest(
        media=media or embedded(content_type=f"{kind.value}/x-test"),
        kind=kind,
        roster=roster,
        record_id=record_id,
        clock=clock,
    )


async def test_audio_analysis_resolves_students(fixed_clock):
    client = FakeModelClient(AUDIO_REPLY)
    pipeline = MediaAnalysisPipeline(model_client=client, record_sink=RecordingSink())

    run = await pipeline.execute(_request(clock=fixed_clock))

    assert run.error is None
    assert run.states == HAPPY_AUDIO_STATES + [PipelineState.DONE]
    result = run.result
    assert result.transcription_or_description.startswith("Hoje a Ana")
    assert result.taxonomy_codes == ("EI-TS", "EI-EO")
    assert result.resolved_student_ids == ("s1", "s2")
    assert result.metadata.detected_names == ("Ana", "Pedro Henrique", "Maria")
    assert result.metadata.confidence == pytest.approx(0.93)
    assert result.metadata.processed_at_utc == FIXED_NOW
    assert not run.persisted


async def test_model_receives_prompt_bytes_and_content_type(fixed_clock):
    client = FakeModelClient(AUDIO_REPLY)
    pipeline = MediaAnalysisPipeline(model_client=client, record_sink=RecordingSink())

    await pipeline.analyze(_request(clock=fixed_clock))

    [call] = client.calls
    assert call["media_bytes"] == b"fake-media-bytes"
    assert call["content_type"] == "audio/x-test"
    assert "Ana Silva, Pedro Henrique Costa" in call["instruction_text"]


async def test_unknown_content_type_falls_back_per_kind(fixed_clock):
    client = FakeModelClient(IMAGE_REPLY)
    pipeline = MediaAnalysisPipeline(model_client=client, record_sink=RecordingSink())

    await pipeline.analyze(
        _request(
            MediaKind.IMAGE,
            media=embedded(content_type="application/octet-stream"),
            clock=fixed_clock,
        )
    )

    assert client.calls[0]["content_type"] == "image/jpeg"


async def test_image_skips_name_resolution(fixed_clock):
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(IMAGE_REPLY), record_sink=RecordingSink()
    )

    run = await pipeline.execute(_request(MediaKind.IMAGE, clock=fixed_clock))

    assert PipelineState.RESOLVING not in run.states
    assert run.result.resolved_student_ids == ()
    assert run.result.transcription_or_description == "crianças montando blocos"
    assert run.result.metadata.children_count == 5


async def test_result_is_persisted_when_record_id_given(fixed_clock):
    sink = RecordingSink()
    pipeline = MediaAnalysisPipeline(model_client=FakeModelClient(AUDIO_REPLY), record_sink=sink)

    run = await pipeline.execute(_request(record_id="r-1", clock=fixed_clock))

    assert run.states[-2:] == [PipelineState.PERSISTING, PipelineState.DONE]
    assert run.persisted
    [(record_id, update, kind)] = sink.updates
    assert record_id == "r-1"
    assert kind is MediaKind.AUDIO
    assert update.taxonomy_codes == ("EI-TS", "EI-EO")
    assert update.metadata["processed_at"] == FIXED_NOW.isoformat()


def _stage_count(stage: str) -> float:
    return REGISTRY.get_sample_value(
        "media_pipeline_stage_seconds_count", {"stage": stage}
    ) or 0.0


async def test_persisting_stage_is_timed_even_when_write_fails(fixed_clock):
    before = _stage_count("persisting")
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(AUDIO_REPLY),
        record_sink=RecordingSink(error=RuntimeError("database down")),
    )

    run = await pipeline.execute(_request(record_id="r-1", clock=fixed_clock))

    assert run.state is PipelineState.DONE
    assert isinstance(run.persistence_error, PersistenceWriteError)
    assert _stage_count("persisting") == before + 1


async def test_persistence_can_be_disabled(fixed_clock):
    sink = RecordingSink()
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(AUDIO_REPLY), record_sink=sink, persist=False
    )

    run = await pipeline.execute(_request(record_id="r-1", clock=fixed_clock))

    assert PipelineState.PERSISTING not in run.states
    assert sink.updates == []
    assert not run.persisted


async def test_failed_write_back_still_returns_result(fixed_clock):
    sink = RecordingSink(error=RuntimeError("database down"))
    pipeline = MediaAnalysisPipeline(model_client=FakeModelClient(AUDIO_REPLY), record_sink=sink)

    run = await pipeline.execute(_request(record_id="r-1", clock=fixed_clock))

    assert run.state is PipelineState.DONE
    assert run.error is None
    assert run.result is not None
    assert isinstance(run.persistence_error, PersistenceWriteError)
    assert run.persistence_error.stage == "persisting"
    assert not run.persisted


async def test_model_failure_fails_at_invoking(fixed_clock):
    sink = RecordingSink()
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(error=LlmInvocationError("quota exceeded")),
        record_sink=sink,
    )

    run = await pipeline.execute(_request(record_id="r-1", clock=fixed_clock))

    assert run.states[-2:] == [PipelineState.INVOKING, PipelineState.FAILED]
    assert isinstance(run.error, ModelUnavailableError)
    assert run.error.stage == "invoking"
    assert run.result is None
    assert sink.updates == []


@pytest.mark.parametrize("reply", [None, "", "   "])
async def test_empty_model_reply_is_model_unavailable(reply, fixed_clock):
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(reply), record_sink=RecordingSink()
    )

    with pytest.raises(ModelUnavailableError):
        await pipeline.analyze(_request(clock=fixed_clock))


async def test_model_timeout_is_model_unavailable(monkeypatch, fixed_clock):
    from app.pipelines.media import llm

    monkeypatch.setattr(llm.settings.model, "timeout_seconds", 0.01)
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(AUDIO_REPLY, delay=1.0), record_sink=RecordingSink()
    )

    with pytest.raises(ModelUnavailableError) as excinfo:
        await pipeline.analyze(_request(clock=fixed_clock))

    assert excinfo.value.stage == "invoking"


async def test_prose_reply_fails_at_extracting(fixed_clock):
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient("Não consegui ouvir o áudio."), record_sink=RecordingSink()
    )

    run = await pipeline.execute(_request(clock=fixed_clock))

    assert isinstance(run.error, NoStructuredPayloadFound)
    assert run.error.stage == "extracting"
    assert run.state is PipelineState.FAILED


async def test_malformed_embedded_media_fails_at_loading(fixed_clock):
    client = FakeModelClient(AUDIO_REPLY)
    pipeline = MediaAnalysisPipeline(model_client=client, record_sink=RecordingSink())
    request = _request(media=embedded(b""), clock=fixed_clock)

    run = await pipeline.execute(request)

    assert isinstance(run.error, MalformedMediaError)
    assert run.error.stage == "loading"
    assert client.calls == []


async def test_unexpected_loader_error_is_wrapped(fixed_clock):
    async def broken_loader(ref):
        raise KeyError("boom")

    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(AUDIO_REPLY),
        record_sink=RecordingSink(),
        media_loader=broken_loader,
    )

    run = await pipeline.execute(_request(media=RemoteMedia("https://x/y"), clock=fixed_clock))

    assert type(run.error) is MediaPipelineError
    assert run.error.stage == "loading"
    assert isinstance(run.error.__cause__, KeyError)


async def test_video_resolves_names_from_its_audio_track(fixed_clock):
    reply = json.dumps(
        {
            "description": "roda de música",
            "transcription": "Muito bem, Pedro!",
            "detected_student_names": ["pedro"],
            "tags_bncc": ["EI-TS"],
        }
    )
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(reply), record_sink=RecordingSink()
    )

    result = await pipeline.analyze(_request(MediaKind.VIDEO, clock=fixed_clock))

    assert result.resolved_student_ids == ("s2",)
    assert result.transcription_or_description == "roda de música"
    assert result.metadata.transcription == "Muito bem, Pedro!"


async def test_concurrent_runs_do_not_share_state(fixed_clock):
    pipeline = MediaAnalysisPipeline(
        model_client=FakeModelClient(AUDIO_REPLY), record_sink=RecordingSink()
    )

    first, second = await asyncio.gather(
        pipeline.execute(_request(clock=fixed_clock)),
        pipeline.execute(_request(MediaKind.AUDIO, roster=(), clock=fixed_clock)),
    )

    assert first.result.resolved_student_ids == ("s1", "s2")
    assert second.result.resolved_student_ids == ()


def test_describe_lists_stages_in_order():
    stages = list(MediaAnalysisPipeline.describe())

    assert [stage.order for stage in stages] == list(range(1, 8))
    assert stages[0].state is PipelineState.LOADING
    assert stages[-1].state is PipelineState.PERSISTING
