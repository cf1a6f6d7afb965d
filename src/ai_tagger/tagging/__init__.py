"""
Tagging mode engine and its wiring from settings.
"""

from ai_tagger.tagging.engine import PlannedCall, TaggingEngine
from ai_tagger.tagging.factory import (
    create_prompt_builder,
    create_request_manager,
    create_tagging_engine,
)

__all__ = [
    "TaggingEngine",
    "PlannedCall",
    "create_prompt_builder",
    "create_request_manager",
    "create_tagging_engine",
]
