"""Tests for the taxonomy registry and its JSON override."""

from __future__ import annotations

import json

import pytest

from app.config.settings import TaxonomyConfig
from app.pipelines.media import DEFAULT_TAXONOMY, TaxonomyField, TaxonomyRegistry
from app.pipelines.media.taxonomy import load_taxonomy


def test_default_taxonomy_holds_the_five_bncc_fields():
    assert DEFAULT_TAXONOMY.codes == ("EI-EO", "EI-CG", "EI-TS", "EI-EF", "EI-ET")
    assert DEFAULT_TAXONOMY.version == "bncc-ei-2017"
    assert DEFAULT_TAXONOMY.get("EI-TS").label == "Traços, sons, cores e formas"
    assert "EI-XX" not in DEFAULT_TAXONOMY


def test_describe_renders_one_line_per_field():
    lines = DEFAULT_TAXONOMY.describe().splitlines()

    assert len(lines) == 5
    assert lines[0] == "   - EI-EO: Eu, o outro e o nós (interações sociais, emoções, identidade)"


def test_duplicate_codes_are_rejected():
    with pytest.raises(ValueError):
        TaxonomyRegistry(
            [TaxonomyField("A", "one"), TaxonomyField("A", "two")],
            version="dup",
        )


def test_empty_registry_is_rejected():
    with pytest.raises(ValueError):
        TaxonomyRegistry([], version="empty")


def test_load_without_file_returns_default():
    assert load_taxonomy(TaxonomyConfig()) is DEFAULT_TAXONOMY


def test_load_from_json_file(tmp_path):
    path = tmp_path / "taxonomy.json"
    path.write_text(
        json.dumps(
            {
                "version": "rede-municipal-2025",
                "fields": [
                    {"code": "M-01", "label": "Natureza", "description": "plantas e bichos"},
                    {"code": "M-02", "label": "Música"},
                ],
            }
        ),
        encoding="utf-8",
    )

    registry = load_taxonomy(TaxonomyConfig(file=str(path)))

    assert registry.version == "rede-municipal-2025"
    assert registry.codes == ("M-01", "M-02")
    assert registry.get("M-02").description == ""


def test_invalid_entry_in_file_is_rejected(tmp_path):
    path = tmp_path / "taxonomy.json"
    path.write_text(json.dumps({"fields": [{"code": "M-01"}]}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_taxonomy(TaxonomyConfig(file=str(path)))
