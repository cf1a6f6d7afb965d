"""
Tagging mode engine.

Encodes what each mode means and sequences the calls a mode needs:

- PREDEFINED_TAGS / EXISTING_TAGS / GENERATE_NEW / CUSTOM: one prompt, one
  call, one resolution
- hybrid modes: a generate call with the larger half of the quota, then a
  matching call with the smaller half, merged so the matched side wins

Every prompt of a request is built before the first network call, so
configuration problems (missing vocabulary, missing or unsafe custom
instructions) fail the request without touching the endpoint.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ai_tagger.exceptions import EmptyContentError
from ai_tagger.llm.cancellation import CancellationToken
from ai_tagger.llm.prompt_builder import PromptBuilder
from ai_tagger.llm.request_manager import RequestManager
from ai_tagger.llm.text_utils import count_tokens_approximate, truncate_content
from ai_tagger.models.enums import TaggingMode
from ai_tagger.models.tagging_models import AnalysisRequest, AnalysisResult
from ai_tagger.validation.resolver import ResponseResolver, split_hybrid_quota


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlannedCall:
    """One prompt to send and the contract its response is resolved under."""

    mode: TaggingMode
    prompt: str
    max_tags: int


class TaggingEngine:
    """
    Runs one logical analysis request end to end.
    """

    def __init__(
        self,
        request_manager: RequestManager,
        prompt_builder: Optional[PromptBuilder] = None,
        resolver: Optional[ResponseResolver] = None,
        max_content_length: int = 8000,
    ):
        """
        Initialize tagging engine.

        Args:
            request_manager: Executes calls against the configured endpoint
            prompt_builder: Renders prompts (packaged templates when omitted)
            resolver: Turns model output into results
            max_content_length: Truncation limit for the active service profile
        """
        self.request_manager = request_manager
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.resolver = resolver or ResponseResolver()
        self.max_content_length = max_content_length

    def validate_config(self) -> None:
        """Raise ConfigurationError when no call could be attempted."""
        self.request_manager.validate_config()

    def plan(self, request: AnalysisRequest) -> list[PlannedCall]:
        """
        Build every prompt the request needs, in call order.

        Raises:
            EmptyContentError: content is empty or whitespace-only
            ConfigurationError: the mode's inputs are incomplete
            PromptInjectionError: custom instructions failed screening
        """
        if not request.content or not request.content.strip():
            raise EmptyContentError("Content to analyze is empty")

        content = truncate_content(request.content, self.max_content_length)
        build = self.prompt_builder.build

        if not request.mode.is_hybrid:
            prompt = build(
                request.mode,
                content,
                candidate_tags=request.candidate_tags,
                max_tags=request.max_tags,
                language=request.language,
                custom_instructions=request.custom_instructions,
            )
            return [PlannedCall(request.mode, prompt, request.max_tags)]

        matched_quota, new_quota = split_hybrid_quota(request.max_tags)
        calls = [
            PlannedCall(
                TaggingMode.GENERATE_NEW,
                build(
                    TaggingMode.GENERATE_NEW,
                    content,
                    max_tags=new_quota,
                    language=request.language,
                ),
                new_quota,
            )
        ]

        matching_mode = request.mode.matching_mode
        if request.candidate_tags and matched_quota > 0:
            calls.append(
                PlannedCall(
                    matching_mode,
                    build(
                        matching_mode,
                        content,
                        candidate_tags=request.candidate_tags,
                        max_tags=matched_quota,
                    ),
                    matched_quota,
                )
            )
        else:
            logger.debug(
                "Skipping matching half of hybrid request",
                mode=request.mode.value,
                candidates=len(request.candidate_tags),
                matched_quota=matched_quota,
            )
        return calls

    async def analyze(
        self,
        request: AnalysisRequest,
        cancellation: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """
        Analyze one piece of content.

        Args:
            request: What to analyze and how
            cancellation: Token that aborts in-flight calls when fired

        Returns:
            Validated AnalysisResult (empty when ``max_tags`` is 0)

        Raises:
            EmptyContentError, ConfigurationError, PromptInjectionError:
                before any network call
            LLMClientError subclasses: call failed after retries
            ResponseValidationError subclasses: unusable model output
        """
        calls = self.plan(request)

        if request.max_tags == 0:
            logger.debug("Zero tag quota, skipping analysis", mode=request.mode.value)
            return AnalysisResult.empty()

        results: list[AnalysisResult] = []
        for call in calls:
            logger.debug(
                "Sending analysis call",
                mode=call.mode.value,
                max_tags=call.max_tags,
                prompt_tokens=count_tokens_approximate(call.prompt),
            )
            text = await self.request_manager.complete(call.prompt, cancellation=cancellation)
            results.append(self.resolver.resolve(text, call.mode, call.max_tags))

        result = self._merge(results) if request.mode.is_hybrid else results[0]

        logger.info(
            "Analysis completed",
            mode=request.mode.value,
            calls=len(calls),
            suggested=len(result.suggested_tags),
            matched=len(result.matched_existing_tags),
        )
        return result

    @staticmethod
    def _merge(results: list[AnalysisResult]) -> AnalysisResult:
        """Combine hybrid halves; AnalysisResult drops generated tags that were also matched."""
        suggested: list[str] = []
        matched: list[str] = []
        for result in results:
            suggested.extend(result.suggested_tags)
            matched.extend(result.matched_existing_tags)
        return AnalysisResult(suggested_tags=suggested, matched_existing_tags=matched)
