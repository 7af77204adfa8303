"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

RULE_FETCHES = Counter(
    "hapds_rule_fetches_total",
    "Rule-set fetches by where the rule text came from",
    labelnames=("origin",),
    registry=REGISTRY,
)

RULE_CACHE_LOOKUPS = Counter(
    "hapds_rule_cache_lookups_total",
    "Rule cache lookups",
    labelnames=("result",),
    registry=REGISTRY,
)

SYNC_OPERATIONS = Counter(
    "hapds_sync_operations_total",
    "Synchronizing operations by outcome",
    labelnames=("operation", "outcome"),
    registry=REGISTRY,
)

READS = Counter(
    "hapds_reads_total",
    "Reads by the artifact that was served",
    labelnames=("served",),
    registry=REGISTRY,
)

GENERATION_LATENCY = Histogram(
    "hapds_generation_latency_seconds",
    "Time spent producing derived content",
    labelnames=("pipeline",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "RULE_FETCHES",
    "RULE_CACHE_LOOKUPS",
    "SYNC_OPERATIONS",
    "READS",
    "GENERATION_LATENCY",
    "metrics_response",
]
