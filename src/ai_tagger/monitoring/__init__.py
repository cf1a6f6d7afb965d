"""
Monitoring and observability components.

Provides Prometheus metrics for requests, retries, response extraction and
batch processing.
"""

from ai_tagger.monitoring.metrics import (
    batch_items_total,
    extraction_strategy_total,
    llm_request_latency_seconds,
    llm_requests_total,
    llm_retries_total,
    tags_dropped_total,
)

__all__ = [
    "llm_requests_total",
    "llm_retries_total",
    "llm_request_latency_seconds",
    "extraction_strategy_total",
    "tags_dropped_total",
    "batch_items_total",
]
