"""
API routes for tag analysis.

- GET /health: service status and configured profile
- POST /connection-test: probe the configured endpoint
- GET /models: models served by a local endpoint
- POST /analyze: analyze one piece of content
- POST /analyze/batch: analyze many documents with one template
"""

import structlog
from fastapi import APIRouter, Depends, status

from ai_tagger.api.dependencies import get_batch_options, get_settings, get_tagging_engine
from ai_tagger.api.models import (
    BatchAnalyzeRequest,
    BatchAnalyzeResponse,
    HealthResponse,
    ModelsResponse,
)
from ai_tagger.batch.documents import AnalysisTemplate, InMemoryDocumentStore, analyze_documents
from ai_tagger.batch.orchestrator import LogProgressNotifier
from ai_tagger.config import Settings
from ai_tagger.exceptions import ConfigurationError
from ai_tagger.llm.providers import fetch_local_models
from ai_tagger.models.batch_models import BatchOptions
from ai_tagger.models.llm_models import ConnectionTestOutcome
from ai_tagger.models.tagging_models import AnalysisRequest, AnalysisResult
from ai_tagger.tagging.engine import TaggingEngine

logger = structlog.get_logger(__name__)

router = APIRouter()


def with_settings_defaults(
    request: AnalysisRequest | AnalysisTemplate, settings: Settings
) -> AnalysisRequest | AnalysisTemplate:
    """Fill tagging fields the caller left out from server settings."""
    update: dict = {}
    if "max_tags" not in request.model_fields_set:
        update["max_tags"] = settings.DEFAULT_MAX_TAGS
    if "language" not in request.model_fields_set:
        update["language"] = settings.TAG_LANGUAGE
    if "custom_instructions" not in request.model_fields_set and settings.CUSTOM_PROMPT:
        update["custom_instructions"] = settings.CUSTOM_PROMPT
    return request.model_copy(update=update) if update else request


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(
    engine: TaggingEngine = Depends(get_tagging_engine),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Report service status without contacting the LLM endpoint."""
    provider = engine.request_manager.provider
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        service_type=settings.LLM_SERVICE_TYPE,
        provider=provider.name,
        model=provider.model_name,
    )


@router.post(
    "/connection-test",
    response_model=ConnectionTestOutcome,
    summary="Probe the configured LLM endpoint",
    description="""
    Sends one trivial prompt with a short deadline and reports success or
    the classified failure. Never retried; always answers 200.
    """,
)
async def connection_test(
    engine: TaggingEngine = Depends(get_tagging_engine),
) -> ConnectionTestOutcome:
    outcome = await engine.request_manager.test_connection()
    logger.info(
        "Connection test finished",
        result=outcome.result.value,
        error_kind=outcome.error.kind.value if outcome.error else None,
    )
    return outcome


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List models of the local endpoint",
    responses={400: {"description": "Service profile is not local"}},
)
async def list_models(settings: Settings = Depends(get_settings)) -> ModelsResponse:
    if settings.LLM_SERVICE_TYPE != "local":
        raise ConfigurationError(
            "Model listing is only available for local endpoints",
            details={"service_type": settings.LLM_SERVICE_TYPE},
        )
    return ModelsResponse(models=await fetch_local_models(settings.LLM_ENDPOINT))


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    status_code=status.HTTP_200_OK,
    summary="Analyze one piece of content",
    responses={
        200: {"description": "Analysis completed"},
        400: {"description": "Configuration error or empty content"},
        422: {"description": "Model response could not be resolved into tags"},
        502: {"description": "LLM endpoint failed"},
        504: {"description": "LLM endpoint timed out"},
    },
)
async def analyze(
    request: AnalysisRequest,
    engine: TaggingEngine = Depends(get_tagging_engine),
    settings: Settings = Depends(get_settings),
) -> AnalysisResult:
    request = with_settings_defaults(request, settings)
    logger.info(
        "Analysis request received",
        mode=request.mode.value,
        max_tags=request.max_tags,
        content_chars=len(request.content),
        candidates=len(request.candidate_tags),
    )
    return await engine.analyze(request)


@router.post(
    "/analyze/batch",
    response_model=BatchAnalyzeResponse,
    summary="Analyze many documents",
    description="""
    Documents are processed one at a time in submission order, in paced
    batches. A failing document is reported in ``errors`` and does not stop
    the run. Configuration errors abort the whole request with 400 before
    any document is analyzed.
    """,
)
async def analyze_batch(
    request: BatchAnalyzeRequest,
    engine: TaggingEngine = Depends(get_tagging_engine),
    defaults: BatchOptions = Depends(get_batch_options),
    settings: Settings = Depends(get_settings),
) -> BatchAnalyzeResponse:
    template = with_settings_defaults(request.template, settings)
    store = InMemoryDocumentStore({doc.ref: doc.content for doc in request.documents})
    logger.info(
        "Batch request received",
        documents=len(request.documents),
        mode=template.mode.value,
    )

    outcome, results = await analyze_documents(
        engine,
        store,
        [doc.ref for doc in request.documents],
        template,
        options=request.options.to_options(defaults),
        notifier=LogProgressNotifier(),
    )
    return BatchAnalyzeResponse.from_outcome(outcome, results)
