"""Name normalization and roster resolution for detected student names.

Matching is intentionally simple and deterministic: for each detected name,
the first roster entry (in roster order) that satisfies any of the three
rules wins, even when a later entry would be a closer match. Two students
sharing a first name are therefore resolved to whoever comes first.
"""

from __future__ import annotations

import logging
import unicodedata
from typing import Iterable, Sequence

from .types import StudentRef

logger = logging.getLogger("app.pipelines.media")


def normalize_name(name: str) -> str:
    """Lower-case, strip diacritics and trim surrounding whitespace."""

    folded = unicodedata.normalize("NFD", (name or "").lower())
    stripped = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return stripped.strip()


def first_name(display_name: str) -> str:
    parts = (display_name or "").split()
    return parts[0] if parts else ""


def _matches(detected: str, student: StudentRef) -> bool:
    student_first = normalize_name(first_name(student.display_name))
    student_full = normalize_name(student.display_name)

    if student_first and detected == student_first:
        return True
    if detected in student_full:
        return True
    # An empty first name is a substring of everything; never match on it.
    return bool(student_first) and student_first in detected


def resolve_participants(
    detected_names: Iterable[str],
    roster: Sequence[StudentRef],
) -> list[str]:
    """Map free-text names onto roster ids, deduplicated, in match order."""

    names = list(detected_names or ())
    if not names or not roster:
        return []

    matched_ids: list[str] = []
    for raw_name in names:
        detected = normalize_name(raw_name)
        if not detected:
            continue

        for student in roster:
            if _matches(detected, student):
                if student.id not in matched_ids:
                    matched_ids.append(student.id)
                break
        else:
            logger.debug("Nome detectado sem correspondência na turma: %s", raw_name)

    return matched_ids


__all__ = ["first_name", "normalize_name", "resolve_participants"]
