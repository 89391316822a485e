"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

MEDIA_ANALYSIS_COUNTER = Counter(
    "media_analyses_total",
    "Media analysis pipeline runs by media kind and outcome",
    ("kind", "outcome"),
)

MEDIA_STAGE_LATENCY = Histogram(
    "media_pipeline_stage_seconds",
    "Time spent in each media pipeline stage",
    ("stage",),
    buckets=(0.001, 0.01, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

PERSISTENCE_FAILURES = Counter(
    "media_persistence_failures_total",
    "Analyses whose write-back to the record store failed",
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def observe_analysis(kind: str, outcome: str) -> None:
    """Count a finished pipeline run (``outcome`` is an error code or ``ok``)."""

    MEDIA_ANALYSIS_COUNTER.labels(kind=kind or "unknown", outcome=outcome).inc()


def observe_stage(stage: str, duration_seconds: float) -> None:
    MEDIA_STAGE_LATENCY.labels(stage=stage).observe(max(duration_seconds, 0))


def increment_persistence_failure() -> None:
    PERSISTENCE_FAILURES.inc()
