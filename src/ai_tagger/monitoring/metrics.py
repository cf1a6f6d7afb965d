"""Custom Prometheus metrics for the AI Tagger Engine.

Exposed at /metrics by the HTTP surface. Useful alerts:
- llm_requests_total{outcome="auth"} (credentials revoked or rotated)
- llm_retries_total (endpoint instability)
- extraction_strategy_total{strategy="scrape"} (model ignoring the JSON format)
- batch_items_total{outcome="failed"} (per-document failures in batch runs)
"""

from prometheus_client import Counter, Histogram

# === Request Metrics ===

llm_requests_total = Counter(
    "llm_requests_total",
    "Logical LLM calls by provider and final outcome",
    ["provider", "outcome"],
)
"""
Logical call counter (one per call_with_retry, not per attempt).

Labels:
- provider: adapter name (openai, claude, local, ...)
- outcome: success, or the ErrorKind value of the surfaced failure
"""

llm_retries_total = Counter(
    "llm_retries_total",
    "Retry attempts by provider and the error kind that triggered them",
    ["provider", "error_kind"],
)

llm_request_latency_seconds = Histogram(
    "llm_request_latency_seconds",
    "Latency of individual HTTP attempts",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0),
)

# === Resolution Metrics ===

extraction_strategy_total = Counter(
    "extraction_strategy_total",
    "Successful payload extractions by fallback strategy",
    ["strategy"],
)
"""
Labels:
- strategy: fenced, brace, fenced_flattened, brace_flattened, scrape

A rising share of non-``fenced``/``brace`` strategies means the model is
drifting away from the requested output format.
"""

tags_dropped_total = Counter(
    "tags_dropped_total",
    "Tags removed because they failed the tag grammar",
    ["field"],
)

# === Batch Metrics ===

batch_items_total = Counter(
    "batch_items_total",
    "Batch items by outcome",
    ["outcome"],
)
"""
Labels:
- outcome: succeeded, failed, skipped (not started because of cancellation)
"""
