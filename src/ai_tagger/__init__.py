"""
AI Tagger Engine: LLM tag analysis and batch orchestration.

Turns free-text document content into a validated set of short tags by
calling a cloud or local language-model endpoint:
- Transport + RequestManager (deadlines, retry/backoff, cancellation)
- ResponseResolver (extraction fallback chain, tag validation, quotas)
- TaggingEngine (per-mode prompts, hybrid composition)
- BatchOrchestrator (rate-limited sequential fan-out across documents)

Architecture: httpx async transport + Jinja2 prompts + FastAPI surface
"""

__version__ = "0.1.0"
