"""Pedagogical taxonomy used to classify classroom media.

The default registry holds the five BNCC early-childhood "campos de
experiência". Deployments may swap it for a versioned JSON file via
``TAXONOMY_FILE`` without touching the prompt templates.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from app.config.settings import TaxonomyConfig, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxonomyField:
    code: str
    label: str
    description: str = ""


class TaxonomyRegistry:
    """Immutable, ordered collection of taxonomy fields keyed by code."""

    def __init__(self, fields: Iterable[TaxonomyField], *, version: str) -> None:
        ordered = tuple(fields)
        if not ordered:
            raise ValueError("A taxonomy needs at least one field.")
        by_code: dict[str, TaxonomyField] = {}
        for item in ordered:
            if item.code in by_code:
                raise ValueError(f"Duplicate taxonomy code: {item.code}")
            by_code[item.code] = item
        self._fields = ordered
        self._by_code = by_code
        self.version = version

    def __iter__(self) -> Iterator[TaxonomyField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(item.code for item in self._fields)

    def get(self, code: str) -> TaxonomyField | None:
        return self._by_code.get(code)

    def describe(self) -> str:
        """Render one bullet per field the way the prompts list them."""

        lines = []
        for item in self._fields:
            hint = f" ({item.description})" if item.description else ""
            lines.append(f"   - {item.code}: {item.label}{hint}")
        return "\n".join(lines)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TaxonomyRegistry":
        raw_fields = data.get("fields")
        if not isinstance(raw_fields, list):
            raise ValueError("Taxonomy document must contain a 'fields' list.")
        fields = []
        for entry in raw_fields:
            if not isinstance(entry, Mapping) or not entry.get("code") or not entry.get("label"):
                raise ValueError(f"Invalid taxonomy entry: {entry!r}")
            fields.append(
                TaxonomyField(
                    code=str(entry["code"]).strip(),
                    label=str(entry["label"]).strip(),
                    description=str(entry.get("description") or "").strip(),
                )
            )
        return cls(fields, version=str(data.get("version") or "custom"))


BNCC_FIELDS = (
    TaxonomyField("EI-EO", "Eu, o outro e o nós", "interações sociais, emoções, identidade"),
    TaxonomyField("EI-CG", "Corpo, gestos e movimentos", "atividades físicas, coordenação"),
    TaxonomyField("EI-TS", "Traços, sons, cores e formas", "arte, música, criatividade"),
    TaxonomyField("EI-EF", "Escuta, fala, pensamento e imaginação", "linguagem, histórias"),
    TaxonomyField(
        "EI-ET",
        "Espaços, tempos, quantidades, relações e transformações",
        "matemática, ciências",
    ),
)

DEFAULT_TAXONOMY = TaxonomyRegistry(BNCC_FIELDS, version="bncc-ei-2017")


def load_taxonomy(config: TaxonomyConfig) -> TaxonomyRegistry:
    """Return the registry described by ``config`` (default BNCC when unset)."""

    if not config.file:
        if config.version == DEFAULT_TAXONOMY.version:
            return DEFAULT_TAXONOMY
        return TaxonomyRegistry(BNCC_FIELDS, version=config.version)

    path = Path(config.file)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError(f"Taxonomy file {path} must hold a JSON object.")
    data = dict(data)
    data.setdefault("version", config.version)
    registry = TaxonomyRegistry.from_mapping(data)
    logger.info(
        "Taxonomia carregada de %s versão=%s campos=%s",
        path,
        registry.version,
        len(registry),
    )
    return registry


@lru_cache(maxsize=1)
def get_taxonomy() -> TaxonomyRegistry:
    """Process-wide taxonomy resolved from settings."""

    return load_taxonomy(settings.taxonomy)


__all__ = [
    "BNCC_FIELDS",
    "DEFAULT_TAXONOMY",
    "TaxonomyField",
    "TaxonomyRegistry",
    "get_taxonomy",
    "load_taxonomy",
]
