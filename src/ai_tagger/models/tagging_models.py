"""
Request and result models for one tag analysis.

Both models are frozen: a request is immutable for the lifetime of a call
and a result is never mutated after the resolver builds it.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ai_tagger.models.enums import TaggingMode


def _unique(tags: list[str]) -> list[str]:
    """Drop duplicates, keeping first occurrence order."""
    return list(dict.fromkeys(tags))


class AnalysisRequest(BaseModel):
    """
    One logical "tag this content" request.
    
    ``custom_instructions`` is only consulted in CUSTOM mode; it is passed
    explicitly instead of being read from global settings.
    """
    model_config = ConfigDict(frozen=True)
    
    content: str = Field(..., description="Document text to analyze")
    candidate_tags: list[str] = Field(
        default_factory=list,
        description="Caller-supplied vocabulary for matching modes (may be empty)"
    )
    mode: TaggingMode = Field(default=TaggingMode.GENERATE_NEW, description="Tagging mode")
    max_tags: int = Field(default=5, ge=0, description="Total tag quota for the result")
    language: Optional[str] = Field(
        default=None,
        description="Output locale for generated tags ('default' or None = no directive)"
    )
    custom_instructions: Optional[str] = Field(
        default=None,
        description="Instruction block for CUSTOM mode"
    )


class AnalysisResult(BaseModel):
    """
    Validated tag analysis result.
    
    Invariants enforced on construction:
    - duplicates within each list are removed (first occurrence wins)
    - a tag present in ``matched_existing_tags`` is removed from
      ``suggested_tags`` (matched side wins)
    """
    model_config = ConfigDict(frozen=True)
    
    suggested_tags: list[str] = Field(default_factory=list, description="Newly proposed tags")
    matched_existing_tags: list[str] = Field(
        default_factory=list,
        description="Tags selected from the candidate vocabulary"
    )
    
    @model_validator(mode="before")
    @classmethod
    def _dedupe_and_separate(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        matched = _unique(list(data.get("matched_existing_tags") or []))
        suggested = [
            tag for tag in _unique(list(data.get("suggested_tags") or []))
            if tag not in matched
        ]
        return {**data, "matched_existing_tags": matched, "suggested_tags": suggested}
    
    @property
    def total(self) -> int:
        return len(self.suggested_tags) + len(self.matched_existing_tags)
    
    @property
    def is_empty(self) -> bool:
        return self.total == 0
    
    @classmethod
    def empty(cls) -> "AnalysisResult":
        return cls()
