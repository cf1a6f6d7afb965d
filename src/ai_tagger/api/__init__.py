"""
FastAPI routes and supporting components.

- routes.py: /health, /connection-test, /models, /analyze, /analyze/batch
- dependencies.py: Dependency injection for settings and the tagging engine
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request tracing
"""

from ai_tagger.api import dependencies, error_handlers, models
from ai_tagger.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
