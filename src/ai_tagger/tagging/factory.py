"""
Wiring from Settings to engine components.

The cloud and local profiles differ in retry budget and content limit;
everything else is shared.
"""

from pathlib import Path
from typing import Optional

from ai_tagger.config import Settings
from ai_tagger.llm.prompt_builder import PromptBuilder
from ai_tagger.llm.providers import create_provider
from ai_tagger.llm.request_manager import RequestManager
from ai_tagger.llm.transport import Transport
from ai_tagger.tagging.engine import TaggingEngine
from ai_tagger.validation.resolver import ResponseResolver


def create_prompt_builder(settings: Settings) -> PromptBuilder:
    templates_dir = Path(settings.PROMPT_TEMPLATES_DIR) if settings.PROMPT_TEMPLATES_DIR else None
    return PromptBuilder(templates_dir=templates_dir)


def create_request_manager(
    settings: Settings,
    transport: Optional[Transport] = None,
    prompt_builder: Optional[PromptBuilder] = None,
) -> RequestManager:
    """
    Build a RequestManager for the configured service profile.

    Unknown provider names raise ConfigurationError here; incomplete
    settings (missing key, bad URL) are reported later by ``validate_config``.
    """
    prompt_builder = prompt_builder or create_prompt_builder(settings)
    provider = create_provider(
        service_type=settings.LLM_SERVICE_TYPE,
        provider=settings.LLM_PROVIDER,
        endpoint=settings.LLM_ENDPOINT,
        api_key=settings.LLM_API_KEY,
        model_name=settings.LLM_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        system_prompt=prompt_builder.build_system_prompt(),
    )
    return RequestManager(
        provider=provider,
        transport=transport,
        max_retries=settings.max_retries,
        retry_base_delay_ms=settings.RETRY_BASE_DELAY_MS,
        request_timeout_ms=settings.REQUEST_TIMEOUT_MS,
        connection_test_timeout_ms=settings.CONNECTION_TEST_TIMEOUT_MS,
    )


def create_tagging_engine(
    settings: Settings,
    transport: Optional[Transport] = None,
) -> TaggingEngine:
    """Build a fully wired TaggingEngine from settings."""
    prompt_builder = create_prompt_builder(settings)
    return TaggingEngine(
        request_manager=create_request_manager(settings, transport, prompt_builder),
        prompt_builder=prompt_builder,
        resolver=ResponseResolver(),
        max_content_length=settings.max_content_length,
    )
