"""
FastAPI dependency injection for the AI Tagger Engine.

Provides singleton instances of expensive resources (tagging engine with its
HTTP connection pool) and per-request defaults derived from settings.
"""

from functools import lru_cache

from fastapi import Depends

from ai_tagger.config import Settings, settings
from ai_tagger.models.batch_models import BatchOptions
from ai_tagger.tagging.engine import TaggingEngine
from ai_tagger.tagging.factory import create_tagging_engine


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.
    
    Returns:
        Settings instance
    """
    return settings


@lru_cache()
def get_tagging_engine() -> TaggingEngine:
    """
    Get singleton tagging engine.
    
    The engine owns the request manager and its httpx connection pool, so
    one instance is shared by every request. Closed on application shutdown.
    
    Returns:
        TaggingEngine wired for the configured service profile
    """
    return create_tagging_engine(get_settings())


def get_batch_options(settings: Settings = Depends(get_settings)) -> BatchOptions:
    """
    Server-side batch pacing defaults.
    
    Args:
        settings: Application settings (injected)
    
    Returns:
        BatchOptions built from settings
    """
    return BatchOptions(
        batch_size=settings.BATCH_SIZE,
        item_delay_ms=settings.BATCH_ITEM_DELAY_MS,
        batch_delay_ms=settings.BATCH_DELAY_MS,
        progress_interval_ms=settings.PROGRESS_INTERVAL_MS,
    )
