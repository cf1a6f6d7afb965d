"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import json
from typing import Any, Callable

import httpx
import pytest

from ai_tagger.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.
    
    Override specific settings in individual tests with model_copy:
        local = test_settings.model_copy(update={"LLM_MODEL": "mistral"})
    """
    return Settings(
        # === Application ===
        APP_NAME="AI Tagger Engine (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        
        # === LLM Service ===
        LLM_SERVICE_TYPE="local",
        LLM_PROVIDER="openai",
        LLM_ENDPOINT="http://localhost:11434",
        LLM_API_KEY="",
        LLM_MODEL="llama3.1",
        LLM_TEMPERATURE=0.3,
        
        # === Retry ===
        RETRY_BASE_DELAY_MS=0,  # No backoff pauses in tests
        
        # === Batch ===
        BATCH_ITEM_DELAY_MS=0,
        BATCH_DELAY_MS=0,
        
        PROMETHEUS_ENABLED=False,
    )


def chat_completion(content: str) -> dict[str, Any]:
    """OpenAI-style chat completion body carrying ``content``."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture
def chat_response() -> Callable[..., httpx.Response]:
    """Factory for httpx responses wrapping a chat completion.
    
    Usage:
        chat_response('{"newTags": ["ml"]}')
        chat_response("...", status_code=500)
    """
    def _make(content: str, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, text=json.dumps(chat_completion(content)))
    return _make
