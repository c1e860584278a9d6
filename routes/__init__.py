"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.workflows import router as workflows_router
from routes.history import router as history_router

__all__ = [
    "workflows_router",
    "history_router",
]
