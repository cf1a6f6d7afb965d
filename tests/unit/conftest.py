"""Unit test fixtures (mocks and stubs).

Provides provider adapters, scripted HTTP transports and mocked request
managers for testing without a real LLM endpoint.
"""

from typing import Callable, Iterable, Union
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from ai_tagger.llm.prompt_builder import PromptBuilder
from ai_tagger.llm.providers import OpenAICompatibleProvider
from ai_tagger.llm.transport import Transport
from ai_tagger.tagging.engine import TaggingEngine

TEST_ENDPOINT = "https://llm.test/v1/chat/completions"


class ScriptedHandler:
    """httpx MockTransport handler replaying a fixed sequence of outcomes.
    
    Each entry is an httpx.Response to return or an exception to raise.
    The last entry repeats once the script runs out. Every request is
    recorded in ``requests``.
    """
    
    def __init__(self, outcomes: Iterable[Union[httpx.Response, Exception]]):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []
    
    @property
    def call_count(self) -> int:
        return len(self.requests)
    
    def __call__(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self.outcomes) - 1)
        self.requests.append(request)
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh copy: a repeated outcome must not share stream state
        return httpx.Response(
            outcome.status_code,
            headers=outcome.headers,
            content=outcome.content,
        )


@pytest.fixture
def openai_provider() -> OpenAICompatibleProvider:
    """OpenAI-compatible adapter pointed at a fake endpoint."""
    return OpenAICompatibleProvider(
        name="openai",
        endpoint=TEST_ENDPOINT,
        api_key="sk-test",
        model_name="gpt-test",
        system_prompt="You are a tagger.",
        temperature=0.2,
    )


@pytest.fixture
def scripted_transport() -> Callable[..., tuple[Transport, ScriptedHandler]]:
    """Factory building a Transport backed by a ScriptedHandler.
    
    Usage:
        transport, handler = scripted_transport([httpx.Response(500), httpx.Response(200)])
    """
    def _make(outcomes):
        handler = ScriptedHandler(outcomes)
        return Transport(http_transport=httpx.MockTransport(handler)), handler
    return _make


@pytest.fixture
def mock_request_manager(openai_provider) -> MagicMock:
    """RequestManager stand-in with scripted ``complete`` responses.
    
    Set ``mock_request_manager.complete.side_effect`` to the model outputs
    (or exceptions) each call should produce.
    """
    manager = MagicMock()
    manager.provider = openai_provider
    manager.complete = AsyncMock(return_value='{"newTags": ["default"]}')
    manager.test_connection = AsyncMock()
    manager.validate_config = MagicMock(return_value=None)
    return manager


@pytest.fixture
def prompt_builder() -> PromptBuilder:
    """PromptBuilder using the packaged templates."""
    return PromptBuilder()


@pytest.fixture
def engine(mock_request_manager, prompt_builder) -> TaggingEngine:
    """TaggingEngine wired to the mocked request manager."""
    return TaggingEngine(
        request_manager=mock_request_manager,
        prompt_builder=prompt_builder,
        max_content_length=8000,
    )
