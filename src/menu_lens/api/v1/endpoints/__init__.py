# src/menu_lens/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .analyses import router as analyses_router
from .history import router as history_router
from .sessions import router as sessions_router

__all__ = [
    "sessions_router",
    "history_router",
    "analyses_router",
]
