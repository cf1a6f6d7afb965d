"""
FastAPI application entry point for the AI Tagger Engine.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from ai_tagger.api.dependencies import get_tagging_engine
from ai_tagger.api.error_handlers import EXCEPTION_HANDLERS
from ai_tagger.api.middleware import RequestTracingMiddleware
from ai_tagger.api.routes import router
from ai_tagger.config import settings
from ai_tagger.logging_config import configure_logging

# Configure structured logging before the app starts emitting events
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Tag analysis for free-text documents with remote or local LLM endpoints",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (must be first for request_id in all logs)
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router, tags=["tagging"])


@app.on_event("startup")
async def startup():
    """Log the active profile and probe the configured endpoint."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        service_type=settings.LLM_SERVICE_TYPE,
        provider=settings.LLM_PROVIDER,
        endpoint=settings.LLM_ENDPOINT,
        model=settings.LLM_MODEL,
    )

    # The probe never raises; an unreachable endpoint only produces a warning
    outcome = await get_tagging_engine().request_manager.test_connection()
    if outcome.error is None:
        logger.info("LLM endpoint reachable", latency_ms=outcome.latency_ms)
    else:
        logger.warning(
            "LLM endpoint not reachable",
            error_kind=outcome.error.kind.value,
            error=outcome.error.message,
        )


@app.on_event("shutdown")
async def shutdown():
    """Abort in-flight LLM requests and close the connection pool."""
    logger.info("Application shutdown")
    await get_tagging_engine().request_manager.aclose()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ai_tagger.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
