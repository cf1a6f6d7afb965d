"""
Unit tests for RequestManager.

Covers the retry policy, deadlines, disposal, caller cancellation and the
connection probe, all against httpx.MockTransport.
"""

import asyncio
from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from ai_tagger.exceptions import ConfigurationError
from ai_tagger.llm.cancellation import CancellationToken
from ai_tagger.llm.exceptions import (
    LLMAuthError,
    LLMHttpError,
    LLMNetworkError,
    LLMRequestCancelledError,
    LLMTimeoutError,
    LLMUnknownError,
)
from ai_tagger.llm.providers import OpenAICompatibleProvider
from ai_tagger.llm.request_manager import RequestManager
from ai_tagger.llm.transport import Transport
from ai_tagger.models.enums import ConnectionTestResult, ErrorKind
from ai_tagger.validation.exceptions import MalformedResponseError

BODY = {"model": "gpt-test", "messages": [{"role": "user", "content": "hi"}]}


def make_manager(provider, transport, **kwargs) -> RequestManager:
    kwargs.setdefault("max_retries", 3)
    kwargs.setdefault("retry_base_delay_ms", 0)
    return RequestManager(provider=provider, transport=transport, **kwargs)


class SlowHandler:
    """Async handler that hangs on the first ``slow_calls`` requests."""
    
    def __init__(self, slow_calls: int = 1_000_000, response: httpx.Response | None = None):
        self.slow_calls = slow_calls
        self.response = response or httpx.Response(200, text="{}")
        self.call_count = 0
    
    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.call_count += 1
        if self.call_count <= self.slow_calls:
            await asyncio.sleep(10)
        return self.response


class TestConstruction:
    
    def test_rejects_zero_attempts(self, openai_provider):
        with pytest.raises(ValueError):
            RequestManager(openai_provider, max_retries=0)


class TestCallWithRetry:
    """Retry policy of call_with_retry."""
    
    @pytest.mark.asyncio
    async def test_retries_server_errors_until_success(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([
            httpx.Response(500),
            httpx.Response(500),
            httpx.Response(200, text="{}"),
        ])
        manager = make_manager(openai_provider, transport)
        
        response = await manager.call_with_retry(BODY)
        
        assert response.ok
        assert handler.call_count == 3
        assert manager.pending_count == 0
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_failure_is_not_retried(self, openai_provider, scripted_transport, status_code):
        transport, handler = scripted_transport([httpx.Response(status_code)])
        manager = make_manager(openai_provider, transport)
        
        with pytest.raises(LLMAuthError) as exc_info:
            await manager.call_with_retry(BODY)
        
        assert exc_info.value.status_code == status_code
        assert handler.call_count == 1
    
    @pytest.mark.asyncio
    async def test_network_errors_exhaust_attempts(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.ConnectError("refused")])
        manager = make_manager(openai_provider, transport)
        
        with pytest.raises(LLMNetworkError):
            await manager.call_with_retry(BODY)
        assert handler.call_count == 3
    
    @pytest.mark.asyncio
    async def test_linear_backoff_without_trailing_delay(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(500)])
        manager = make_manager(openai_provider, transport, retry_base_delay_ms=1000)
        
        with patch("ai_tagger.llm.request_manager.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(LLMHttpError) as exc_info:
                await manager.call_with_retry(BODY)
        
        assert exc_info.value.status_code == 500
        assert handler.call_count == 3
        assert sleep.await_args_list == [call(1.0), call(2.0)]
    
    @pytest.mark.asyncio
    async def test_per_call_overrides(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(502)])
        manager = make_manager(openai_provider, transport)
        
        with pytest.raises(LLMHttpError):
            await manager.call_with_retry(BODY, max_retries=1)
        assert handler.call_count == 1
    
    @pytest.mark.asyncio
    async def test_config_error_sends_nothing(self, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(200, text="{}")])
        provider = OpenAICompatibleProvider("openai", "", api_key="", model_name="gpt-test")
        manager = make_manager(provider, transport)
        
        with pytest.raises(ConfigurationError) as exc_info:
            await manager.call_with_retry(BODY)
        
        assert exc_info.value.message == "API key is required"
        assert handler.call_count == 0


class TestDeadlinesAndCancellation:
    
    @pytest.mark.asyncio
    async def test_deadline_raises_timeout(self, openai_provider):
        transport = Transport(http_transport=httpx.MockTransport(SlowHandler()))
        manager = make_manager(openai_provider, transport, max_retries=1, request_timeout_ms=50)
        
        with pytest.raises(LLMTimeoutError):
            await asyncio.wait_for(manager.call_with_retry(BODY), timeout=5)
        assert manager.pending_count == 0
        await manager.aclose()
    
    @pytest.mark.asyncio
    async def test_timeout_is_retried_with_fresh_deadline(self, openai_provider):
        handler = SlowHandler(slow_calls=1)
        transport = Transport(http_transport=httpx.MockTransport(handler))
        manager = make_manager(openai_provider, transport, max_retries=2, request_timeout_ms=50)
        
        response = await asyncio.wait_for(manager.call_with_retry(BODY), timeout=5)
        
        assert response.ok
        assert handler.call_count == 2
        await manager.aclose()
    
    @pytest.mark.asyncio
    async def test_dispose_aborts_pending_request(self, openai_provider):
        handler = SlowHandler()
        transport = Transport(http_transport=httpx.MockTransport(handler))
        manager = make_manager(openai_provider, transport)
        
        task = asyncio.create_task(manager.call_with_retry(BODY))
        await asyncio.sleep(0.05)
        assert manager.pending_count == 1
        
        manager.dispose()
        manager.dispose()
        
        with pytest.raises(LLMRequestCancelledError):
            await asyncio.wait_for(task, timeout=5)
        assert handler.call_count == 1
        assert manager.pending_count == 0
        assert manager.disposed
        await transport.aclose()
    
    @pytest.mark.asyncio
    async def test_disposed_manager_refuses_calls(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(200, text="{}")])
        manager = make_manager(openai_provider, transport)
        manager.dispose()
        
        with pytest.raises(LLMRequestCancelledError):
            await manager.call(BODY)
        assert handler.call_count == 0
    
    @pytest.mark.asyncio
    async def test_caller_token_aborts_request(self, openai_provider):
        handler = SlowHandler()
        transport = Transport(http_transport=httpx.MockTransport(handler))
        manager = make_manager(openai_provider, transport)
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel)
        
        with pytest.raises(LLMRequestCancelledError):
            await asyncio.wait_for(manager.call_with_retry(BODY, cancellation=token), timeout=5)
        
        assert handler.call_count == 1
        assert manager.pending_count == 0
        await manager.aclose()
    
    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_retries(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(500)])
        manager = make_manager(openai_provider, transport, retry_base_delay_ms=200)
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel)
        
        with pytest.raises(LLMRequestCancelledError):
            await manager.call_with_retry(BODY, cancellation=token)
        assert handler.call_count <= 1


class TestComplete:
    
    @pytest.mark.asyncio
    async def test_returns_message_content(self, openai_provider, scripted_transport, chat_response):
        transport, handler = scripted_transport([chat_response('{"newTags": ["#ml"]}')])
        manager = make_manager(openai_provider, transport)
        
        assert await manager.complete("Tag this") == '{"newTags": ["#ml"]}'
        assert b"Tag this" in handler.requests[0].content
    
    @pytest.mark.asyncio
    async def test_non_json_body(self, openai_provider, scripted_transport):
        transport, _ = scripted_transport([httpx.Response(200, text="<html>gateway</html>")])
        manager = make_manager(openai_provider, transport)
        
        with pytest.raises(MalformedResponseError):
            await manager.complete("Tag this")
    
    @pytest.mark.asyncio
    async def test_provider_error_payload(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([
            httpx.Response(200, json={"error": {"message": "model overloaded"}})
        ])
        manager = make_manager(openai_provider, transport)
        
        with pytest.raises(LLMUnknownError) as exc_info:
            await manager.complete("Tag this")
        assert "model overloaded" in str(exc_info.value)
        assert handler.call_count == 1


class TestConnectionTest:
    
    @pytest.mark.asyncio
    async def test_unauthorized(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(401)])
        manager = make_manager(openai_provider, transport)
        
        outcome = await manager.test_connection()
        
        assert outcome.result == ConnectionTestResult.FAILED
        assert outcome.error.kind == ErrorKind.AUTH
        assert outcome.error.status_code == 401
        assert handler.call_count == 1
    
    @pytest.mark.asyncio
    async def test_not_found(self, openai_provider, scripted_transport):
        transport, _ = scripted_transport([httpx.Response(404)])
        manager = make_manager(openai_provider, transport)
        
        outcome = await manager.test_connection()
        
        assert outcome.error.kind == ErrorKind.HTTP
        assert "not found" in outcome.error.message
    
    @pytest.mark.asyncio
    async def test_success(self, openai_provider, scripted_transport, chat_response):
        transport, handler = scripted_transport([chat_response("Hi there")])
        manager = make_manager(openai_provider, transport)
        
        outcome = await manager.test_connection()
        
        assert outcome.result == ConnectionTestResult.SUCCESS
        assert outcome.error is None
        assert outcome.latency_ms is not None
        assert b"Hello" in handler.requests[0].content
    
    @pytest.mark.asyncio
    async def test_network_failure_single_attempt(self, openai_provider, scripted_transport):
        transport, handler = scripted_transport([httpx.ConnectError("refused")])
        manager = make_manager(openai_provider, transport)
        
        outcome = await manager.test_connection()
        
        assert outcome.error.kind == ErrorKind.NETWORK
        assert handler.call_count == 1
    
    @pytest.mark.asyncio
    async def test_unexpected_body(self, openai_provider, scripted_transport):
        transport, _ = scripted_transport([httpx.Response(200, json={"object": "list"})])
        manager = make_manager(openai_provider, transport)
        
        outcome = await manager.test_connection()
        assert outcome.error.kind == ErrorKind.UNKNOWN
    
    @pytest.mark.asyncio
    async def test_configuration_problem(self, scripted_transport):
        transport, handler = scripted_transport([httpx.Response(200)])
        provider = OpenAICompatibleProvider("openai", "not-a-url", "k", "m")
        manager = make_manager(provider, transport)
        
        outcome = await manager.test_connection()
        
        assert outcome.error.kind == ErrorKind.CONFIGURATION
        assert outcome.error.message == "Invalid endpoint URL format"
        assert handler.call_count == 0
