"""
FastAPI exception handlers for structured error responses.

Maps the engine's exception taxonomy to HTTP status codes:

- ConfigurationError, EmptyContentError -> 400 (request cannot be served as configured)
- ResponseValidationError -> 422 (model answered, answer unusable)
- LLMTimeoutError -> 504
- other LLMClientError -> 502 (upstream endpoint failed)
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ai_tagger.exceptions import ConfigurationError, EmptyContentError
from ai_tagger.llm.exceptions import LLMClientError, LLMTimeoutError
from ai_tagger.validation.exceptions import ResponseValidationError

logger = structlog.get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """
    Handle configuration errors (including rejected custom instructions).

    Maps to 400 Bad Request: nothing was sent to the model.
    """
    logger.warning(
        "Configuration error",
        error_type=type(exc).__name__,
        details=exc.details,
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "configuration_error",
            "message": exc.message,
            "details": exc.details,
            "timestamp": _timestamp(),
        },
    )


async def empty_content_error_handler(request: Request, exc: EmptyContentError) -> JSONResponse:
    """Handle empty content. Maps to 400 Bad Request."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "empty_content",
            "message": exc.message,
            "timestamp": _timestamp(),
        },
    )


async def response_validation_error_handler(
    request: Request, exc: ResponseValidationError
) -> JSONResponse:
    """
    Handle unusable model output (no tags recovered, missing fields).

    Maps to 422 Unprocessable Entity.
    """
    logger.warning(
        "Response validation error",
        error_type=type(exc).__name__,
        details=exc.details,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "invalid_model_response",
            "message": exc.message,
            "details": exc.details,
            "timestamp": _timestamp(),
        },
    )


async def llm_timeout_error_handler(request: Request, exc: LLMTimeoutError) -> JSONResponse:
    """
    Handle LLM timeout errors.

    Maps to 504 Gateway Timeout (upstream service timeout).
    """
    logger.error("LLM timeout error", error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content={
            "error": "llm_timeout",
            "message": "LLM endpoint request timed out",
            "timestamp": _timestamp(),
        },
    )


async def llm_client_error_handler(request: Request, exc: LLMClientError) -> JSONResponse:
    """
    Handle every other transport failure (network, auth, HTTP status, cancelled).

    Maps to 502 Bad Gateway; ``kind`` tells the caller which one it was.
    """
    logger.error(
        "LLM client error",
        error_kind=exc.kind.value,
        error=str(exc),
    )

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "error": "llm_request_failed",
            "kind": exc.kind.value,
            "message": exc.message,
            "timestamp": _timestamp(),
        },
    )


async def pydantic_validation_error_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors raised inside handlers.

    Maps to 400 Bad Request (client error).
    """
    logger.warning("Invalid request format", errors=exc.errors())

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "invalid_request",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False, include_context=False),
            "timestamp": _timestamp(),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "timestamp": _timestamp(),
        },
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    ConfigurationError: configuration_error_handler,
    EmptyContentError: empty_content_error_handler,
    ResponseValidationError: response_validation_error_handler,
    LLMTimeoutError: llm_timeout_error_handler,
    LLMClientError: llm_client_error_handler,
    PydanticValidationError: pydantic_validation_error_handler,
    Exception: generic_error_handler,
}
