"""
Batch orchestration.

- orchestrator.py: paced, sequential, cancellable batch runner
- documents.py: document store protocol and per-document analysis jobs
"""

from ai_tagger.batch.documents import (
    AnalysisTemplate,
    DocumentNotFoundError,
    DocumentStore,
    InMemoryDocumentStore,
    analyze_documents,
)
from ai_tagger.batch.orchestrator import (
    BatchOrchestrator,
    LogProgressNotifier,
    ProgressNotifier,
    progress_message,
)

__all__ = [
    "BatchOrchestrator",
    "ProgressNotifier",
    "LogProgressNotifier",
    "progress_message",
    "DocumentStore",
    "DocumentNotFoundError",
    "InMemoryDocumentStore",
    "AnalysisTemplate",
    "analyze_documents",
]
