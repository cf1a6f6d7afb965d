"""
Data models for the AI Tagger Engine.

Includes:
- Enums (TaggingMode, ErrorKind, ConnectionTestResult, CancelReason, ServiceType)
- Tagging models (AnalysisRequest, AnalysisResult)
- LLM models (TransportResponse, ConnectionTestOutcome)
- Batch models (BatchOptions, BatchItemError, BatchOutcome)
"""

from ai_tagger.models.enums import (
    CancelReason,
    ConnectionTestResult,
    ErrorKind,
    ServiceType,
    TaggingMode,
)
from ai_tagger.models.tagging_models import AnalysisRequest, AnalysisResult
from ai_tagger.models.llm_models import (
    ConnectionTestError,
    ConnectionTestOutcome,
    TransportResponse,
)
from ai_tagger.models.batch_models import BatchItemError, BatchOptions, BatchOutcome

__all__ = [
    # Enums
    "TaggingMode",
    "ErrorKind",
    "ConnectionTestResult",
    "CancelReason",
    "ServiceType",
    # Tagging models
    "AnalysisRequest",
    "AnalysisResult",
    # LLM models
    "TransportResponse",
    "ConnectionTestError",
    "ConnectionTestOutcome",
    # Batch models
    "BatchOptions",
    "BatchItemError",
    "BatchOutcome",
]
