"""
Validation-specific exceptions for response resolution.

Response errors are never retried within one call: the same prompt is
likely to yield the same unusable answer. They surface to the mode engine
and, in batch runs, become a single recorded item failure.
"""

from typing import Any

from ai_tagger.exceptions import TaggerError


class ResponseValidationError(TaggerError):
    """
    Base exception for all response resolution errors.
    """
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class MalformedResponseError(ResponseValidationError):
    """
    Structured data was recovered but required fields are missing.
    
    Raised instead of silently treating a missing field as empty.
    """
    
    def __init__(
        self,
        message: str,
        missing_fields: list[str] | None = None,
        content: str | None = None,
    ):
        """
        Initialize malformed response error.
        
        Args:
            message: Error description
            missing_fields: Required fields absent from the payload
            content: Raw content (first 500 chars kept for debugging)
        """
        details: dict[str, Any] = {}
        if missing_fields:
            details["missing_fields"] = missing_fields
        if content:
            details["content_snippet"] = content[:500]
        
        super().__init__(message, details)


class NoValidTagsFoundError(ResponseValidationError):
    """
    Every extraction strategy failed, or validation removed every tag.
    """
    
    def __init__(self, message: str, content: str | None = None, field: str | None = None):
        details: dict[str, Any] = {}
        if content:
            details["content_snippet"] = content[:500]
        if field:
            details["field"] = field
        
        super().__init__(message, details)


class TagValidationError(ResponseValidationError):
    """
    A single tag does not match the tag grammar.
    
    The resolver catches this and drops the tag.
    """
    
    def __init__(self, message: str, tag: Any = None):
        details = {"tag": str(tag)} if tag is not None else {}
        super().__init__(message, details)
        self.tag = tag
