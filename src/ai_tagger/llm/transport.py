"""
HTTP transport for LLM endpoints.

Issues exactly one POST per ``send`` using a persistent httpx AsyncClient and
races it against a cancellation token. No retries happen here: the transport
only classifies what went wrong.
"""

import asyncio
import json
import time
from typing import Any, Optional

import httpx
import structlog

from ai_tagger.llm.cancellation import CancellationToken
from ai_tagger.llm.exceptions import (
    LLMNetworkError,
    LLMRequestCancelledError,
    LLMTimeoutError,
    LLMUnknownError,
)
from ai_tagger.models.enums import CancelReason
from ai_tagger.models.llm_models import TransportResponse


logger = structlog.get_logger(__name__)


class Transport:
    """
    Single-request HTTP transport.

    Outcome classification:
    - any HTTP status -> TransportResponse (status judged by the caller)
    - httpx.TimeoutException -> LLMTimeoutError
    - httpx.TransportError (connect, read, protocol) -> LLMNetworkError
    - other httpx.HTTPError -> LLMUnknownError
    - token fired with reason TIMEOUT -> LLMTimeoutError
    - token fired with any other reason -> LLMRequestCancelledError
    """

    def __init__(
        self,
        connection_limits: Optional[httpx.Limits] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize transport.

        Args:
            connection_limits: httpx connection pool limits
            http_transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._http_transport = http_transport

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                limits=self._connection_limits,
                transport=self._http_transport,
                follow_redirects=True,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def send(
        self,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any],
        token: CancellationToken,
        timeout_s: Optional[float] = None,
    ) -> TransportResponse:
        """
        POST ``body`` as JSON to ``url``.

        Args:
            url: Endpoint URL
            headers: Request headers (authentication included)
            body: JSON-serializable request body
            token: Cancellation token; firing it aborts the request
            timeout_s: httpx-level timeout, a backstop behind the token deadline

        Returns:
            TransportResponse for any HTTP status

        Raises:
            LLMTimeoutError, LLMNetworkError, LLMRequestCancelledError, LLMUnknownError
        """
        if token.cancelled:
            raise self._cancelled_error(token.reason)

        client = await self._get_client()
        start_time = time.perf_counter()

        request_task = asyncio.ensure_future(
            client.post(
                url,
                headers=headers,
                content=json.dumps(body),
                timeout=timeout_s,
            )
        )
        cancel_task = asyncio.ensure_future(token.wait())

        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            request_task.cancel()
            cancel_task.cancel()
            raise

        if request_task not in done:
            # Token fired first: abort the in-flight request
            request_task.cancel()
            try:
                await request_task
            except (asyncio.CancelledError, httpx.HTTPError):
                pass
            logger.warning("Request aborted", url=url, reason=token.reason)
            raise self._cancelled_error(token.reason)

        cancel_task.cancel()
        latency_ms = int((time.perf_counter() - start_time) * 1000)

        try:
            response = request_task.result()
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"Request timeout: {e}",
                details={"url": url, "error_type": type(e).__name__}
            ) from e
        except httpx.TransportError as e:
            raise LLMNetworkError(
                f"Network error: {e}",
                details={"url": url, "error_type": type(e).__name__}
            ) from e
        except httpx.HTTPError as e:
            raise LLMUnknownError(
                f"Unexpected transport error: {e}",
                details={"url": url, "error_type": type(e).__name__}
            ) from e

        logger.debug(
            "HTTP exchange completed",
            url=url,
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            latency_ms=latency_ms,
        )

    async def get_json(self, url: str, timeout_s: float = 10.0) -> Any:
        """
        GET ``url`` and decode the JSON body.

        Used for lightweight discovery calls (model listing). Raises the same
        classified errors as ``send`` plus LLMUnknownError for non-2xx or
        undecodable responses.
        """
        client = await self._get_client()
        try:
            response = await client.get(url, timeout=timeout_s)
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"Request timeout: {e}", details={"url": url}) from e
        except httpx.TransportError as e:
            raise LLMNetworkError(f"Network error: {e}", details={"url": url}) from e

        if not response.is_success:
            raise LLMUnknownError(
                f"Unexpected status {response.status_code}",
                details={"url": url, "status_code": response.status_code},
            )
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise LLMUnknownError("Invalid JSON body", details={"url": url}) from e

    @staticmethod
    def _cancelled_error(reason: Optional[CancelReason]) -> Exception:
        if reason == CancelReason.TIMEOUT:
            return LLMTimeoutError("Request deadline exceeded", details={"reason": reason.value})
        return LLMRequestCancelledError(
            "Request cancelled",
            details={"reason": reason.value if reason else None},
        )

    async def aclose(self) -> None:
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed transport client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
