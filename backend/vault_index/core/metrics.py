"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

INDEX_RUNS = Counter(
    "vidx_index_runs_total",
    "Indexing runs by mode and outcome",
    labelnames=("mode", "outcome"),
    registry=REGISTRY,
)

INDEX_DURATION = Histogram(
    "vidx_index_duration_seconds",
    "Indexing run duration",
    labelnames=("mode",),
    registry=REGISTRY,
)

EMBED_BATCH_FAILURES = Counter(
    "vidx_embed_batch_failures_total",
    "Embedding batches that failed as a whole",
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "vidx_index_entries",
    "Number of entries stored in the vector store",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "INDEX_RUNS",
    "INDEX_DURATION",
    "EMBED_BATCH_FAILURES",
    "INDEX_SIZE",
    "metrics_response",
]
