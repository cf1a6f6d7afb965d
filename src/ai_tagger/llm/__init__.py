"""
LLM access layer.

Components:
- CancellationToken: one-shot cooperative cancellation signal
- Transport: single-request httpx transport with failure classification
- providers: adapters for OpenAI-compatible, Anthropic and local endpoints
- RequestManager: deadlines, retry with backoff, disposal, connection probe
- PromptBuilder: Jinja2 prompts per tagging mode
- text_utils: content truncation
- exceptions: transport-level exceptions
"""

from ai_tagger.llm.cancellation import CancellationToken
from ai_tagger.llm.exceptions import (
    LLMAuthError,
    LLMClientError,
    LLMHttpError,
    LLMNetworkError,
    LLMRequestCancelledError,
    LLMTimeoutError,
    LLMUnknownError,
)
from ai_tagger.llm.prompt_builder import PromptBuilder
from ai_tagger.llm.providers import (
    ClaudeProvider,
    LocalProvider,
    OpenAICompatibleProvider,
    ProviderAdapter,
    create_provider,
    fetch_local_models,
)
from ai_tagger.llm.request_manager import RequestManager
from ai_tagger.llm.transport import Transport

__all__ = [
    "CancellationToken",
    "Transport",
    "ProviderAdapter",
    "OpenAICompatibleProvider",
    "ClaudeProvider",
    "LocalProvider",
    "create_provider",
    "fetch_local_models",
    "RequestManager",
    "PromptBuilder",
    "LLMClientError",
    "LLMNetworkError",
    "LLMTimeoutError",
    "LLMAuthError",
    "LLMHttpError",
    "LLMRequestCancelledError",
    "LLMUnknownError",
]
