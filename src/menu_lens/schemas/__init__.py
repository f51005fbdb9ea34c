# src/menu_lens/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .history import (
    FavoriteResponse,
    FavoriteToggle,
    HistoryData,
    HistoryResponse,
    MenuAnalysisResponse,
    MenuSave,
    ProductAnalysisResponse,
    ProductSave,
    SaveResponse,
)
from .session import ErrorResponse, SessionResponse

__all__ = [
    "ErrorResponse", "SessionResponse",
    "FavoriteResponse", "FavoriteToggle",
    "HistoryData", "HistoryResponse",
    "MenuAnalysisResponse", "ProductAnalysisResponse",
    "MenuSave", "ProductSave", "SaveResponse",
]
