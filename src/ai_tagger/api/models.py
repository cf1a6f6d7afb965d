"""
API-specific request and response models for FastAPI endpoints.

These models wrap the core domain models (AnalysisRequest, AnalysisResult,
BatchOutcome) for the HTTP surface.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ai_tagger.batch.documents import AnalysisTemplate
from ai_tagger.models.batch_models import BatchOptions, BatchOutcome
from ai_tagger.models.tagging_models import AnalysisResult


class HealthResponse(BaseModel):
    """Response for health check endpoint."""
    
    status: str = Field(description="Service status", examples=["healthy"])
    version: str = Field(description="Service version")
    service_type: str = Field(description="Active LLM service profile", examples=["local", "cloud"])
    provider: str = Field(description="Provider adapter in use")
    model: str = Field(description="Configured model identifier")


class ModelsResponse(BaseModel):
    """Models served by the configured local endpoint."""
    
    models: list[str] = Field(default_factory=list, description="Model identifiers")


class BatchDocument(BaseModel):
    """One document submitted for batch analysis."""
    model_config = ConfigDict(frozen=True)
    
    ref: str = Field(..., min_length=1, description="Caller's document reference")
    content: str = Field(..., description="Document text")


class BatchOptionsModel(BaseModel):
    """Pacing overrides for one batch request (unset fields use server defaults)."""
    
    batch_size: Optional[int] = Field(default=None, ge=1, description="Items per batch")
    item_delay_ms: Optional[int] = Field(default=None, ge=0, description="Pause between items")
    batch_delay_ms: Optional[int] = Field(default=None, ge=0, description="Pause between batches")
    
    def to_options(self, defaults: BatchOptions) -> BatchOptions:
        return BatchOptions(
            batch_size=self.batch_size if self.batch_size is not None else defaults.batch_size,
            item_delay_ms=self.item_delay_ms if self.item_delay_ms is not None else defaults.item_delay_ms,
            batch_delay_ms=self.batch_delay_ms if self.batch_delay_ms is not None else defaults.batch_delay_ms,
            progress_interval_ms=defaults.progress_interval_ms,
            silent=defaults.silent,
        )


class BatchAnalyzeRequest(BaseModel):
    """Request for batch analysis."""
    
    documents: list[BatchDocument] = Field(
        description="Documents to analyze, in processing order",
        min_length=1,
        max_length=100  # Soft limit: the request stays open for the whole run
    )
    template: AnalysisTemplate = Field(
        default_factory=AnalysisTemplate,
        description="Request settings shared by every document"
    )
    options: BatchOptionsModel = Field(
        default_factory=BatchOptionsModel,
        description="Pacing overrides"
    )


class BatchItemErrorModel(BaseModel):
    """One failed document."""
    
    ref: str
    message: str


class BatchAnalyzeResponse(BaseModel):
    """Response for batch analysis endpoint."""
    
    success: bool = Field(description="True when no document failed")
    processed_count: int = Field(ge=0)
    success_count: int = Field(ge=0)
    cancelled: bool = False
    errors: list[BatchItemErrorModel] = Field(default_factory=list)
    results: dict[str, AnalysisResult] = Field(
        default_factory=dict,
        description="Results of successfully analyzed documents, keyed by ref"
    )
    
    @classmethod
    def from_outcome(
        cls, outcome: BatchOutcome, results: dict[str, AnalysisResult]
    ) -> "BatchAnalyzeResponse":
        return cls(
            success=outcome.success,
            processed_count=outcome.processed_count,
            success_count=outcome.success_count,
            cancelled=outcome.cancelled,
            errors=[BatchItemErrorModel(ref=str(e.item), message=e.message) for e in outcome.errors],
            results=results,
        )
