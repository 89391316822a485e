"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    MEDIA_ANALYSIS_COUNTER,
    MEDIA_STAGE_LATENCY,
    PERSISTENCE_FAILURES,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    increment_persistence_failure,
    observe_analysis,
    observe_request,
    observe_stage,
)

__all__ = [
    "ERROR_COUNTER",
    "MEDIA_ANALYSIS_COUNTER",
    "MEDIA_STAGE_LATENCY",
    "PERSISTENCE_FAILURES",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "increment_persistence_failure",
    "observe_analysis",
    "observe_request",
    "observe_stage",
]
