"""
LLM-layer data models for the request/response cycle.

These models are internal to the transport and request manager. They are
kept separate from the tagging models so provider specifics never leak into
``AnalysisResult``.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ai_tagger.models.enums import ConnectionTestResult, ErrorKind


class TransportResponse(BaseModel):
    """
    Raw outcome of one HTTP exchange.
    
    Returned for every HTTP status; classifying non-2xx codes is the
    request manager's job.
    """
    model_config = ConfigDict(frozen=True)
    
    status_code: int = Field(..., description="HTTP status code")
    text: str = Field(default="", description="Response body as text")
    latency_ms: int = Field(default=0, ge=0, description="Round-trip latency in milliseconds")
    
    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
    
    def json(self) -> Any:
        return json.loads(self.text)


class ConnectionTestError(BaseModel):
    """Failure detail of a connection probe."""
    
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None


class ConnectionTestOutcome(BaseModel):
    """
    Result of ``RequestManager.test_connection``.
    
    Never raised: every failure is folded into ``error``.
    """
    
    result: ConnectionTestResult
    error: Optional[ConnectionTestError] = None
    latency_ms: Optional[int] = None
    
    @classmethod
    def success(cls, latency_ms: Optional[int] = None) -> "ConnectionTestOutcome":
        return cls(result=ConnectionTestResult.SUCCESS, latency_ms=latency_ms)
    
    @classmethod
    def failed(
        cls, kind: ErrorKind, message: str, status_code: Optional[int] = None
    ) -> "ConnectionTestOutcome":
        return cls(
            result=ConnectionTestResult.FAILED,
            error=ConnectionTestError(kind=kind, message=message, status_code=status_code),
        )
