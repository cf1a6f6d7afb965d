"""
Request manager: deadline-bound, cancellable, retried LLM calls.

Owns every in-flight request of one engine instance. Each call gets its own
cancellation token (linked to the caller's token when one is given) and a
deadline timer that fires the token with reason TIMEOUT. ``dispose()``
fires every pending token with reason DISPOSED and is safe to call any
number of times.

Retry policy (``call_with_retry``):
- 2xx -> return immediately
- 401/403 -> LLMAuthError, no retry
- other statuses, timeouts, network errors -> retry with linear backoff
  (``base_delay * attempt``), no delay after the last attempt
- cancellation -> raised immediately, no retry
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ai_tagger.exceptions import ConfigurationError
from ai_tagger.llm.cancellation import CancellationToken
from ai_tagger.llm.exceptions import (
    LLMAuthError,
    LLMClientError,
    LLMHttpError,
    LLMRequestCancelledError,
    LLMUnknownError,
    error_kind_of,
)
from ai_tagger.llm.providers import ProviderAdapter
from ai_tagger.llm.transport import Transport
from ai_tagger.models.enums import CancelReason, ErrorKind
from ai_tagger.models.llm_models import ConnectionTestOutcome, TransportResponse
from ai_tagger.monitoring.metrics import (
    llm_request_latency_seconds,
    llm_requests_total,
    llm_retries_total,
)
from ai_tagger.validation.exceptions import MalformedResponseError


logger = structlog.get_logger(__name__)

AUTH_STATUS_CODES = (401, 403)
CONNECTION_TEST_PROMPT = "Hello"


@dataclass
class PendingRequest:
    """Registry entry for one in-flight request."""

    token: CancellationToken
    deadline: float
    timer: Optional[asyncio.TimerHandle] = None

    def __hash__(self) -> int:
        return id(self)


class RequestManager:
    """
    Executes provider requests with deadlines, cancellation and retry.
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        transport: Optional[Transport] = None,
        max_retries: int = 3,
        retry_base_delay_ms: int = 1000,
        request_timeout_ms: int = 30000,
        connection_test_timeout_ms: int = 10000,
    ):
        """
        Initialize request manager.

        Args:
            provider: Adapter that shapes requests and reads responses
            transport: HTTP transport (a fresh one is created when omitted)
            max_retries: Total attempts per logical call
            retry_base_delay_ms: Linear backoff unit
            request_timeout_ms: Per-attempt deadline
            connection_test_timeout_ms: Deadline of the connection probe
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.provider = provider
        self.transport = transport or Transport()
        self.max_retries = max_retries
        self.retry_base_delay_ms = retry_base_delay_ms
        self.request_timeout_ms = request_timeout_ms
        self.connection_test_timeout_ms = connection_test_timeout_ms
        self._pending: set[PendingRequest] = set()
        self._disposed = False

        logger.info(
            "RequestManager initialized",
            provider=provider.name,
            model=provider.model_name,
            max_retries=max_retries,
            request_timeout_ms=request_timeout_ms,
        )

    @property
    def pending_count(self) -> int:
        """Number of requests currently in flight."""
        return len(self._pending)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def validate_config(self) -> None:
        """
        Check that a call can be attempted at all.

        Raises:
            ConfigurationError: adapter reports a missing or malformed setting
        """
        error = self.provider.validate_config()
        if error:
            raise ConfigurationError(error, details={"provider": self.provider.name})

    async def call(
        self,
        body: dict[str, Any],
        timeout_ms: Optional[int] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> TransportResponse:
        """
        Issue one request with a deadline.

        Args:
            body: Provider-formatted request body
            timeout_ms: Deadline (defaults to the configured request timeout)
            cancellation: Caller token; firing it aborts this request

        Returns:
            TransportResponse for any HTTP status

        Raises:
            LLMTimeoutError: deadline elapsed
            LLMRequestCancelledError: disposed or cancelled by the caller
            LLMNetworkError, LLMUnknownError: transport failures
        """
        if self._disposed:
            raise LLMRequestCancelledError(
                "Request manager has been disposed",
                details={"reason": CancelReason.DISPOSED.value},
            )

        timeout_ms = timeout_ms if timeout_ms is not None else self.request_timeout_ms
        timeout_s = timeout_ms / 1000
        loop = asyncio.get_running_loop()

        token = CancellationToken(parent=cancellation)
        entry = PendingRequest(token=token, deadline=loop.time() + timeout_s)
        entry.timer = loop.call_later(timeout_s, token.cancel, CancelReason.TIMEOUT)
        self._pending.add(entry)

        started = time.perf_counter()
        try:
            return await self.transport.send(
                self.provider.get_endpoint(),
                self.provider.get_headers(),
                body,
                token,
                # Backstop only; the token deadline fires first
                timeout_s=timeout_s + 1,
            )
        finally:
            llm_request_latency_seconds.labels(provider=self.provider.name).observe(
                time.perf_counter() - started
            )
            if entry.timer is not None:
                entry.timer.cancel()
            token.detach()
            self._pending.discard(entry)

    async def call_with_retry(
        self,
        body: dict[str, Any],
        timeout_ms: Optional[int] = None,
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> TransportResponse:
        """
        Issue a request with retries and linear backoff.

        Returns:
            The first 2xx TransportResponse

        Raises:
            ConfigurationError: invalid configuration (checked before any attempt)
            LLMAuthError: HTTP 401/403
            LLMRequestCancelledError: aborted by disposal or the caller
            LLMClientError: last failure once every attempt is used up
        """
        self.validate_config()

        attempts = max_retries if max_retries is not None else self.max_retries
        base_delay_ms = base_delay_ms if base_delay_ms is not None else self.retry_base_delay_ms
        provider = self.provider.name
        last_error: Optional[LLMClientError] = None

        for attempt in range(1, attempts + 1):
            try:
                response = await self.call(body, timeout_ms=timeout_ms, cancellation=cancellation)
            except LLMClientError as e:
                if not e.retryable:
                    llm_requests_total.labels(provider=provider, outcome=e.kind.value).inc()
                    raise
                last_error = e
            else:
                if response.ok:
                    llm_requests_total.labels(provider=provider, outcome="success").inc()
                    logger.debug(
                        "LLM call succeeded",
                        provider=provider,
                        attempt=attempt,
                        latency_ms=response.latency_ms,
                    )
                    return response

                if response.status_code in AUTH_STATUS_CODES:
                    llm_requests_total.labels(provider=provider, outcome=ErrorKind.AUTH.value).inc()
                    logger.error(
                        "Authentication failed",
                        provider=provider,
                        status_code=response.status_code,
                    )
                    raise LLMAuthError(
                        "Authentication failed: check the API key",
                        status_code=response.status_code,
                        details={"provider": provider},
                    )

                last_error = LLMHttpError(
                    f"HTTP error {response.status_code}",
                    status_code=response.status_code,
                    details={"provider": provider, "body_snippet": response.text[:200]},
                )

            logger.warning(
                "LLM call attempt failed",
                provider=provider,
                attempt=attempt,
                max_attempts=attempts,
                error_kind=last_error.kind.value,
                error=str(last_error),
            )

            if attempt < attempts:
                llm_retries_total.labels(provider=provider, error_kind=last_error.kind.value).inc()
                await asyncio.sleep(base_delay_ms * attempt / 1000)
                if cancellation is not None and cancellation.cancelled:
                    llm_requests_total.labels(
                        provider=provider, outcome=ErrorKind.CANCELLED.value
                    ).inc()
                    raise LLMRequestCancelledError(
                        "Request cancelled during backoff",
                        details={"reason": cancellation.reason.value if cancellation.reason else None},
                    )
                if self._disposed:
                    llm_requests_total.labels(
                        provider=provider, outcome=ErrorKind.CANCELLED.value
                    ).inc()
                    raise LLMRequestCancelledError(
                        "Request manager has been disposed",
                        details={"reason": CancelReason.DISPOSED.value},
                    )

        assert last_error is not None
        llm_requests_total.labels(provider=provider, outcome=last_error.kind.value).inc()
        logger.error(
            "LLM call failed after all attempts",
            provider=provider,
            attempts=attempts,
            error_kind=last_error.kind.value,
        )
        raise last_error

    async def complete(
        self,
        prompt: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> str:
        """
        Send a prompt and return the model's message content.

        Raises:
            MalformedResponseError: body is not JSON
            LLMUnknownError: provider reported an error or the body has no content
            plus everything ``call_with_retry`` raises
        """
        body = self.provider.format_request(prompt)
        response = await self.call_with_retry(body, cancellation=cancellation)

        try:
            raw = response.json()
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                "Response body is not valid JSON",
                content=response.text,
            ) from e

        provider_error = self.provider.extract_error(raw)
        if provider_error:
            raise LLMUnknownError(
                f"Provider error: {provider_error}",
                details={"provider": self.provider.name},
            )

        return self.provider.parse_response_content(raw)

    async def test_connection(self) -> ConnectionTestOutcome:
        """
        Probe the endpoint with a trivial prompt.

        Single attempt, short deadline. Never raises: every failure is
        reported through the returned outcome.
        """
        error = self.provider.validate_config()
        if error:
            return ConnectionTestOutcome.failed(ErrorKind.CONFIGURATION, error)

        body = self.provider.format_request(CONNECTION_TEST_PROMPT)
        try:
            response = await self.call(body, timeout_ms=self.connection_test_timeout_ms)
        except LLMClientError as e:
            logger.warning("Connection test failed", provider=self.provider.name, error=str(e))
            return ConnectionTestOutcome.failed(error_kind_of(e), e.message)

        if response.status_code in AUTH_STATUS_CODES:
            return ConnectionTestOutcome.failed(
                ErrorKind.AUTH,
                "Authentication failed: check the API key",
                status_code=response.status_code,
            )
        if response.status_code == 404:
            return ConnectionTestOutcome.failed(
                ErrorKind.HTTP,
                "API endpoint not found: check the endpoint URL",
                status_code=404,
            )
        if not response.ok:
            return ConnectionTestOutcome.failed(
                ErrorKind.HTTP,
                f"HTTP error {response.status_code}",
                status_code=response.status_code,
            )

        try:
            raw = response.json()
            provider_error = self.provider.extract_error(raw)
            if provider_error:
                return ConnectionTestOutcome.failed(ErrorKind.UNKNOWN, provider_error)
            self.provider.parse_response_content(raw)
        except (json.JSONDecodeError, LLMClientError) as e:
            return ConnectionTestOutcome.failed(
                ErrorKind.UNKNOWN,
                f"Invalid response from endpoint: {e}",
            )

        logger.info(
            "Connection test succeeded",
            provider=self.provider.name,
            latency_ms=response.latency_ms,
        )
        return ConnectionTestOutcome.success(latency_ms=response.latency_ms)

    def dispose(self) -> None:
        """
        Abort every pending request and refuse new ones.

        Idempotent. Does not close the HTTP client (see ``aclose``).
        """
        pending, self._pending = self._pending, set()
        self._disposed = True
        for entry in pending:
            if entry.timer is not None:
                entry.timer.cancel()
            entry.token.cancel(CancelReason.DISPOSED)
        if pending:
            logger.info("Disposed pending requests", count=len(pending))

    async def aclose(self) -> None:
        """Dispose and close the underlying HTTP client."""
        self.dispose()
        await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
