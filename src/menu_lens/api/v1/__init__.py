# src/menu_lens/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import analyses_router, history_router, sessions_router

__all__ = [
    "sessions_router",
    "history_router",
    "analyses_router",
]
