"""Prompt construction stage for the media analysis pipeline.

Given the media kind and the class roster we emit a single instruction that:
* describes the task for that kind (transcribe audio, describe a photo or a video),
* lists every taxonomy field with its code and description,
* embeds the roster names (in the order supplied) so the model can spot them,
* pins the exact JSON the model must return, with no prose around it.

The output is a pure function of (kind, roster, taxonomy).
"""

from __future__ import annotations

from typing import Sequence

from .taxonomy import DEFAULT_TAXONOMY, TaxonomyRegistry
from .types import MediaKind, PromptSpec, StudentRef

_PERSONA = "Você é um assistente especializado em Educação Infantil."

# JSON shape the model must return for each kind of media.
OUTPUT_SCHEMAS = {
    MediaKind.AUDIO: (
        "{\n"
        '  "transcription": "texto transcrito completo",\n'
        '  "tags_bncc": ["EI-XX", "EI-YY"],\n'
        '  "detected_student_names": ["Nome do Aluno 1", "Nome do Aluno 2"],\n'
        '  "detected_activities": ["atividade1", "atividade2"],\n'
        '  "detected_emotions": ["emoção1"],\n'
        '  "confidence": 0.95\n'
        "}"
    ),
    MediaKind.IMAGE: (
        "{\n"
        '  "description": "descrição breve da imagem",\n'
        '  "children_count": 3,\n'
        '  "tags_bncc": ["EI-XX", "EI-YY"],\n'
        '  "detected_activities": ["atividade1", "atividade2"],\n'
        '  "confidence": 0.95\n'
        "}"
    ),
    MediaKind.VIDEO: (
        "{\n"
        '  "description": "descrição breve do vídeo",\n'
        '  "transcription": "falas audíveis no vídeo, se houver",\n'
        '  "children_count": 3,\n'
        '  "detected_student_names": ["Nome do Aluno 1"],\n'
        '  "tags_bncc": ["EI-XX", "EI-YY"],\n'
        '  "detected_activities": ["atividade1"],\n'
        '  "detected_emotions": ["emoção1"],\n'
        '  "confidence": 0.9\n'
        "}"
    ),
}


def _roster_names(roster: Sequence[StudentRef]) -> str:
    return ", ".join(student.display_name for student in roster)


def _audio_task(taxonomy: TaxonomyRegistry, roster: Sequence[StudentRef]) -> str:
    roster_context = ""
    if roster:
        roster_context = (
            "\n\nALUNOS DA TURMA (identifique se algum nome é mencionado):\n"
            f"{_roster_names(roster)}"
        )
    return (
        "Analise este áudio de uma professora falando sobre atividades ou observações de alunos.\n\n"
        "Sua tarefa:\n"
        "1. TRANSCREVA o áudio completo em português brasileiro\n"
        "2. IDENTIFIQUE quais campos da BNCC estão relacionados ao conteúdo:\n"
        f"{taxonomy.describe()}\n"
        "3. IDENTIFIQUE quais alunos são MENCIONADOS pelo nome no áudio"
        f"{roster_context}"
    )


def _image_task(taxonomy: TaxonomyRegistry, roster: Sequence[StudentRef]) -> str:
    roster_context = ""
    if roster:
        roster_context = (
            "\n\nINFORMAÇÕES DA TURMA:\n"
            f"- Total de alunos: {len(roster)}\n"
            f"- Nomes: {_roster_names(roster)}"
        )
    return (
        "Analise esta foto tirada em uma sala de aula de educação infantil.\n\n"
        "Sua tarefa:\n"
        "1. DESCREVA brevemente o que você vê na imagem\n"
        "2. CONTE quantas crianças aparecem na foto\n"
        "3. IDENTIFIQUE quais campos da BNCC estão relacionados:\n"
        f"{taxonomy.describe()}\n"
        "4. IDENTIFIQUE atividades visíveis (desenho, brincadeira, leitura, etc.)"
        f"{roster_context}"
    )


def _video_task(taxonomy: TaxonomyRegistry, roster: Sequence[StudentRef]) -> str:
    roster_context = ""
    if roster:
        roster_context = (
            "\n\nALUNOS DA TURMA (identifique se algum nome é mencionado no áudio do vídeo):\n"
            f"{_roster_names(roster)}"
        )
    return (
        "Analise este vídeo gravado em uma sala de aula de educação infantil.\n\n"
        "Sua tarefa:\n"
        "1. DESCREVA brevemente o que acontece no vídeo\n"
        "2. Se houver ÁUDIO, transcreva as falas e identifique nomes de alunos mencionados\n"
        "3. IDENTIFIQUE quais campos da BNCC estão relacionados:\n"
        f"{taxonomy.describe()}\n"
        "4. IDENTIFIQUE atividades e emoções visíveis"
        f"{roster_context}"
    )


_TASK_BUILDERS = {
    MediaKind.AUDIO: _audio_task,
    MediaKind.IMAGE: _image_task,
    MediaKind.VIDEO: _video_task,
}


def build_prompt(
    kind: MediaKind,
    roster: Sequence[StudentRef] = (),
    *,
    taxonomy: TaxonomyRegistry = DEFAULT_TAXONOMY,
) -> PromptSpec:
    """Compose the instruction and output schema for ``kind``."""

    kind = MediaKind(kind)
    schema = OUTPUT_SCHEMAS[kind]
    task = _TASK_BUILDERS[kind](taxonomy, roster)
    codes = ", ".join(taxonomy.codes)

    instruction = (
        f"{_PERSONA}\n\n"
        f"{task}\n\n"
        f"Use somente os códigos BNCC listados ({codes}).\n"
        "Responda APENAS em JSON válido, sem texto antes ou depois e sem blocos de código:\n"
        f"{schema}"
    )
    return PromptSpec(instruction_text=instruction, output_schema_description=schema)


__all__ = ["OUTPUT_SCHEMAS", "build_prompt"]
