"""
Document-level batch analysis.

Connects the batch orchestrator to the tagging engine: each item is a
document reference, its content is read from a DocumentStore, analyzed with
a shared request template and handed back to the caller. Nothing is ever
written back to the store.
"""

from typing import Callable, Hashable, Optional, Protocol, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ai_tagger.batch.orchestrator import BatchOrchestrator, ProgressNotifier
from ai_tagger.exceptions import TaggerError
from ai_tagger.llm.cancellation import CancellationToken
from ai_tagger.models.batch_models import BatchOptions, BatchOutcome
from ai_tagger.models.enums import CancelReason, TaggingMode
from ai_tagger.models.tagging_models import AnalysisRequest, AnalysisResult
from ai_tagger.tagging.engine import TaggingEngine


logger = structlog.get_logger(__name__)

# Stand-in content used to build prompts once before a batch starts
_PREFLIGHT_CONTENT = "preflight"


class DocumentStore(Protocol):
    """Read-only access to document content by reference."""

    async def read_content(self, ref: Hashable) -> str: ...


class DocumentNotFoundError(TaggerError):
    """Raised by a store when a reference does not resolve to a document."""
    pass


class InMemoryDocumentStore:
    """DocumentStore backed by a dict of ``ref -> content``."""

    def __init__(self, documents: Optional[dict[Hashable, str]] = None):
        self._documents = dict(documents or {})

    def add(self, ref: Hashable, content: str) -> None:
        self._documents[ref] = content

    def refs(self) -> list[Hashable]:
        return list(self._documents)

    async def read_content(self, ref: Hashable) -> str:
        try:
            return self._documents[ref]
        except KeyError:
            raise DocumentNotFoundError(f"Document not found: {ref}", details={"ref": str(ref)}) from None


class AnalysisTemplate(BaseModel):
    """Everything of an AnalysisRequest except the content."""
    model_config = ConfigDict(frozen=True)

    candidate_tags: list[str] = Field(default_factory=list, description="Vocabulary for matching modes")
    mode: TaggingMode = Field(default=TaggingMode.GENERATE_NEW, description="Tagging mode")
    max_tags: int = Field(default=5, ge=0, description="Tag quota per document")
    language: Optional[str] = Field(default=None, description="Output locale for generated tags")
    custom_instructions: Optional[str] = Field(default=None, description="Instruction block for CUSTOM mode")

    def for_content(self, content: str) -> AnalysisRequest:
        return AnalysisRequest(content=content, **self.model_dump())


async def analyze_documents(
    engine: TaggingEngine,
    store: DocumentStore,
    refs: Sequence[Hashable],
    template: AnalysisTemplate,
    options: Optional[BatchOptions] = None,
    notifier: Optional[ProgressNotifier] = None,
    on_result: Optional[Callable[[Hashable, AnalysisResult], None]] = None,
    orchestrator: Optional[BatchOrchestrator] = None,
    cancellation: Optional[CancellationToken] = None,
) -> tuple[BatchOutcome, dict[Hashable, AnalysisResult]]:
    """
    Analyze many documents with one request template.

    Configuration is validated once up front: an invalid endpoint, missing
    vocabulary or unusable custom instructions abort the whole job before
    the first document is read.

    Args:
        engine: Tagging engine to run per document
        store: Source of document content
        refs: Document references, in processing order
        template: Request settings shared by every document
        options: Pacing options (ignored when ``orchestrator`` is given)
        notifier: Progress sink (ignored when ``orchestrator`` is given)
        on_result: Called with ``(ref, result)`` after each successful analysis
        orchestrator: Pre-built orchestrator, for callers that need ``cancel()``
        cancellation: Token handed to every engine call; firing it aborts the
            in-flight request and stops the batch before the next item
            (``orchestrator.cancel()`` alone only stops new items)

    Returns:
        Tuple of (batch outcome, results keyed by reference)

    Raises:
        ConfigurationError: the job cannot start
    """
    engine.validate_config()
    engine.plan(template.for_content(_PREFLIGHT_CONTENT))

    orchestrator = orchestrator or BatchOrchestrator(options=options, notifier=notifier)
    results: dict[Hashable, AnalysisResult] = {}

    def stop_batch(reason: CancelReason) -> None:
        orchestrator.cancel()

    async def process(ref: Hashable) -> None:
        content = await store.read_content(ref)
        result = await engine.analyze(template.for_content(content), cancellation=cancellation)
        results[ref] = result
        if on_result is not None:
            on_result(ref, result)

    if cancellation is not None:
        cancellation.add_callback(stop_batch)
    try:
        outcome = await orchestrator.run(list(refs), process)
    finally:
        if cancellation is not None:
            cancellation.remove_callback(stop_batch)

    logger.info(
        "Document analysis finished",
        documents=len(refs),
        analyzed=len(results),
        failed=len(outcome.errors),
    )
    return outcome, results
