"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse
from .media import (
    AiMetadata,
    AnalysisView,
    ProcessMediaRequest,
    ProcessMediaResponse,
    StudentInfo,
    TaxonomyFieldView,
    TaxonomyResponse,
)

__all__ = [
    "AiMetadata",
    "AnalysisView",
    "ErrorResponse",
    "ProcessMediaRequest",
    "ProcessMediaResponse",
    "StudentInfo",
    "TaxonomyFieldView",
    "TaxonomyResponse",
]
