"""Tests for pulling the structured payload out of model replies."""

from __future__ import annotations

import json

import pytest

from app.pipelines.media import (
    ExtractionError,
    MediaKind,
    NoStructuredPayloadFound,
    PayloadParseError,
    extract_payload,
    parse_payload,
)
from app.services.response_contract import DEFAULT_CONFIDENCE, locate_json_object


def test_payload_wrapped_in_prose_is_recovered():
    raw = (
        'Here is the analysis: {"description":"kids painting","tags_bncc":["EI-TS"],'
        '"confidence":0.9} hope it helps'
    )

    payload = extract_payload(raw, MediaKind.IMAGE)

    assert payload.description == "kids painting"
    assert payload.taxonomy_codes == ["EI-TS"]
    assert payload.confidence == pytest.approx(0.9)


def test_markdown_fence_is_tolerated():
    raw = '```json\n{"transcription": "Ana pintou", "tags_bncc": ["EI-TS"]}\n```'

    payload = extract_payload(raw, MediaKind.AUDIO)

    assert payload.transcription == "Ana pintou"


def test_reply_without_braces_fails_with_no_structured_payload():
    result = parse_payload("I could not analyse this media.", MediaKind.AUDIO)

    assert not result.ok
    assert isinstance(result.error, NoStructuredPayloadFound)
    with pytest.raises(NoStructuredPayloadFound):
        result.unwrap()


def test_empty_reply_fails_with_no_structured_payload():
    with pytest.raises(NoStructuredPayloadFound):
        extract_payload("", MediaKind.VIDEO)


def test_invalid_json_span_fails_with_parse_error():
    result = parse_payload('{"description": "kids", "tags_bncc": [EI-TS]}', MediaKind.IMAGE)

    assert isinstance(result.error, PayloadParseError)
    assert result.error.__cause__ is not None


def test_contract_violation_fails_with_parse_error():
    with pytest.raises(PayloadParseError):
        extract_payload('{"transcription": "oi", "confidence": "very high"}', MediaKind.AUDIO)


def test_parse_errors_share_the_extraction_base_class():
    assert issubclass(NoStructuredPayloadFound, ExtractionError)
    assert issubclass(PayloadParseError, ExtractionError)


def test_absent_fields_fall_back_to_defaults():
    payload = extract_payload('{"transcription": "bom dia"}', MediaKind.AUDIO)

    assert payload.confidence == DEFAULT_CONFIDENCE
    assert payload.taxonomy_codes == []
    assert payload.detected_names == []
    assert payload.detected_emotions == []


def test_null_confidence_defaults_but_zero_is_kept():
    assert extract_payload('{"confidence": null}', MediaKind.IMAGE).confidence == DEFAULT_CONFIDENCE
    assert extract_payload('{"confidence": 0}', MediaKind.IMAGE).confidence == 0.0


@pytest.mark.parametrize("value, expected", [(1.7, 1.0), (-0.3, 0.0), ("0.42", 0.42)])
def test_confidence_is_clamped(value, expected):
    payload = extract_payload(json.dumps({"confidence": value}), MediaKind.IMAGE)

    assert payload.confidence == pytest.approx(expected)


def test_list_fields_are_coerced_leniently():
    raw = (
        '{"transcription": "x", "tags_bncc": "EI-EO", '
        '"detected_student_names": ["Ana", null, "  ", "Pedro"]}'
    )

    payload = extract_payload(raw, MediaKind.AUDIO)

    assert payload.taxonomy_codes == ["EI-EO"]
    assert payload.detected_names == ["Ana", "Pedro"]


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_confidence_falls_back_to_default(literal):
    payload = extract_payload(
        '{"description": "x", "confidence": ' + literal + "}", MediaKind.IMAGE
    )

    assert payload.confidence == DEFAULT_CONFIDENCE


@pytest.mark.parametrize("value, expected", [("3", 3), ("muitas", None), (-2, None), (True, None)])
def test_children_count_is_lenient(value, expected):
    raw = json.dumps({"description": "roda", "children_count": value})

    assert extract_payload(raw, MediaKind.IMAGE).children_count == expected


def test_video_primary_text_prefers_description():
    payload = extract_payload(
        '{"description": "roda de música", "transcription": "vamos cantar"}', MediaKind.VIDEO
    )

    assert payload.primary_text() == "roda de música"


def test_video_primary_text_falls_back_to_transcription():
    payload = extract_payload('{"transcription": "vamos cantar"}', MediaKind.VIDEO)

    assert payload.primary_text() == "vamos cantar"


@pytest.mark.parametrize(
    "text, expected",
    [
        ('x {"a": 1} y', '{"a": 1}'),
        ('{"a": {"b": 2}}', '{"a": {"b": 2}}'),
        ("} before {", None),
        ("no braces", None),
    ],
)
def test_locate_json_object(text, expected):
    assert locate_json_object(text) == expected
