"""
Response validation: model output to validated tags.

- tag_format.py: tag grammar, sanitizing, hash-prefixed formatting
- extraction.py: fallback chain recovering a JSON payload from free text
- resolver.py: per-mode field contract and quota enforcement
- exceptions.py: response-level exceptions
"""

from .exceptions import (
    MalformedResponseError,
    NoValidTagsFoundError,
    ResponseValidationError,
    TagValidationError,
)
from .extraction import ExtractedPayload, extract_payload
from .resolver import ResponseResolver, split_hybrid_quota
from .tag_format import format_tag, is_valid_tag, sanitize_tag

__all__ = [
    # Resolution
    "ResponseResolver",
    "split_hybrid_quota",
    "extract_payload",
    "ExtractedPayload",
    # Tag grammar
    "is_valid_tag",
    "sanitize_tag",
    "format_tag",
    # Exceptions
    "ResponseValidationError",
    "MalformedResponseError",
    "NoValidTagsFoundError",
    "TagValidationError",
]
