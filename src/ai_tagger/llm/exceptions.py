"""
Custom exceptions for the LLM client layer.

Every exception is constructed where the failure is detected and carries
its classification explicitly, so the retry loop and the HTTP surface never
have to inspect message text to decide what happened.
"""

from typing import Optional

from ai_tagger.exceptions import TaggerError
from ai_tagger.models.enums import ErrorKind


class LLMClientError(TaggerError):
    """
    Base exception for transport-level failures.
    
    ``retryable`` tells the request manager whether another attempt may
    succeed. Subclasses set ``kind`` to their ErrorKind.
    """
    kind: ErrorKind = ErrorKind.UNKNOWN
    retryable: bool = True


class LLMNetworkError(LLMClientError):
    """
    Raised when the endpoint is unreachable.
    
    DNS failures, refused connections, dropped sockets. Retried.
    """
    kind = ErrorKind.NETWORK


class LLMTimeoutError(LLMClientError):
    """
    Raised when a request exceeds its deadline.
    
    Distinct from cancellation: a timeout is retried with a fresh deadline.
    """
    kind = ErrorKind.TIMEOUT


class LLMAuthError(LLMClientError):
    """
    Raised when the endpoint rejects the credentials (HTTP 401/403).
    
    Never retried: the same credentials will be rejected again.
    """
    kind = ErrorKind.AUTH
    retryable = False

    def __init__(self, message: str, status_code: int = 401, details: dict | None = None):
        super().__init__(message, {"status_code": status_code, **(details or {})})
        self.status_code = status_code


class LLMHttpError(LLMClientError):
    """Raised for a non-2xx status other than authentication failures. Retried."""
    kind = ErrorKind.HTTP

    def __init__(self, message: str, status_code: int, details: dict | None = None):
        super().__init__(message, {"status_code": status_code, **(details or {})})
        self.status_code = status_code


class LLMRequestCancelledError(LLMClientError):
    """
    Raised when a request was aborted by disposal or by its caller.
    
    Never retried.
    """
    kind = ErrorKind.CANCELLED
    retryable = False


class LLMUnknownError(LLMClientError):
    """Raised for transport failures that fit no other category. Retried."""
    kind = ErrorKind.UNKNOWN


def error_kind_of(error: Exception) -> ErrorKind:
    """Classification of any exception raised by the engine."""
    kind: Optional[ErrorKind] = getattr(error, "kind", None)
    return kind if isinstance(kind, ErrorKind) else ErrorKind.UNKNOWN
