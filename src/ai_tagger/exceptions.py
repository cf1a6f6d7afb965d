"""
Engine-wide exception base and the errors raised before any call is made.

Transport failures live in ``ai_tagger.llm.exceptions`` and response
failures in ``ai_tagger.validation.exceptions``; both derive from
``TaggerError`` so the HTTP surface can catch the whole taxonomy at once.
"""

from ai_tagger.models.enums import ErrorKind


class TaggerError(Exception):
    """
    Base exception for every error raised by the engine.
    
    Carries a human-readable message plus structured details for logging.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TaggerError):
    """
    Raised when the engine cannot even attempt a call.
    
    Examples:
    - Missing or malformed endpoint URL
    - Missing model name or required API key
    - CUSTOM mode without instructions
    - Matching mode without a candidate vocabulary
    
    Never retried. In batch runs it is checked once up front so the batch
    does not start at all.
    """
    kind = ErrorKind.CONFIGURATION


class PromptInjectionError(ConfigurationError):
    """Raised when custom instructions contain an injection-style phrase."""
    pass


class EmptyContentError(TaggerError):
    """Raised when the content to analyze is empty or whitespace-only."""
    pass
