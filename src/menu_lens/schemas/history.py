"""Schemas for saved analyses, history listing and favorites."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

AnalysisType = Literal["menu", "product"]
HistoryType = Literal["all", "menu", "product"]


class MenuAnalysisResponse(BaseModel):
    id: str
    session_id: str
    image_url: str | None
    menu_items: list[dict[str, Any]]
    is_favorite: bool
    drive_file_id: str | None = None
    sheet_row_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductAnalysisResponse(BaseModel):
    id: str
    session_id: str
    image_url: str | None
    product_items: list[dict[str, Any]]
    is_favorite: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HistoryData(BaseModel):
    menus: list[MenuAnalysisResponse] = Field(default_factory=list)
    products: list[ProductAnalysisResponse] = Field(default_factory=list)


class HistoryResponse(BaseModel):
    success: bool = True
    data: HistoryData


class FavoriteToggle(BaseModel):
    """Request to mark or unmark a saved analysis as favorite."""

    id: str = Field(..., min_length=1)
    type: AnalysisType
    is_favorite: bool = Field(..., alias="isFavorite", strict=True)
    # Optional explicit session identifier; must match the token's sid when given.
    session_id: str | None = Field(None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class FavoriteResponse(BaseModel):
    success: bool = True
    is_favorite: bool = Field(..., alias="isFavorite")

    model_config = ConfigDict(populate_by_name=True)


class ProductSave(BaseModel):
    """Translated product items to persist for the caller's session."""

    product_items: list[dict[str, Any]] = Field(..., alias="productItems")
    session_id: str | None = Field(None, alias="sessionId")
    image_base64: str | None = Field(None, alias="imageBase64")

    model_config = ConfigDict(populate_by_name=True)


class MenuSave(BaseModel):
    """Translated menu items to persist for the caller's session."""

    menu_items: list[dict[str, Any]] = Field(..., alias="menuItems")
    session_id: str | None = Field(None, alias="sessionId")
    image_base64: str | None = Field(None, alias="imageBase64")

    model_config = ConfigDict(populate_by_name=True)


class SaveResponse(BaseModel):
    success: bool = True
    id: str
