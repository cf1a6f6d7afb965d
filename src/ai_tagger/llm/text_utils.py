"""
Text processing utilities for the LLM layer.

Content is cut before it reaches the prompt so that a single long document
cannot blow through the model's context window.
"""

TRUNCATION_MARKER = "..."


def truncate_content(text: str, max_chars: int) -> str:
    """
    Truncate content to ``max_chars`` characters.

    Content over the limit is sliced to exactly ``max_chars`` characters and
    the truncation marker is appended; content at or under the limit is
    returned unchanged.

    Args:
        text: Document content
        max_chars: Maximum character count (service-profile dependent)

    Returns:
        Content ready for the prompt

    Examples:
        >>> truncate_content("abcdef", 3)
        'abc...'
        >>> truncate_content("abc", 3)
        'abc'
    """
    if max_chars < 0:
        raise ValueError("max_chars must be non-negative")
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def count_tokens_approximate(text: str) -> int:
    """
    Rough approximation of token count for text.

    Uses ~4 characters per token. Only good enough for log fields and
    pre-flight sanity checks, never for billing.
    """
    return max(1, len(text) // 4)
