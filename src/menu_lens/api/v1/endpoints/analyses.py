"""Endpoints persisting translated menus and products."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from menu_lens.api.v1.dependencies import (
    HistoryServiceDep,
    rate_limited_session,
    resolve_owner,
)
from menu_lens.schemas.history import MenuSave, ProductSave, SaveResponse
from menu_lens.services.images import validate_image_base64
from menu_lens.services.tokens import SessionPayload

router = APIRouter(tags=["analyses"])

SaveMenuSessionDep = Annotated[SessionPayload, Depends(rate_limited_session("save-menu"))]
SaveProductSessionDep = Annotated[SessionPayload, Depends(rate_limited_session("save-product"))]


def _check_image(image_base64: str | None) -> None:
    if image_base64 is None:
        return
    try:
        validate_image_base64(image_base64)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err


@router.post("/menus", response_model=SaveResponse)
async def save_menu(
    payload: MenuSave,
    session: SaveMenuSessionDep,
    history: HistoryServiceDep,
) -> SaveResponse:
    """Store a translated menu under the caller's session."""
    owner = resolve_owner(session, payload.session_id)
    _check_image(payload.image_base64)
    record = history.save_menu(owner, payload.menu_items, payload.image_base64)
    return SaveResponse(id=record.id)


@router.post("/products", response_model=SaveResponse)
async def save_product(
    payload: ProductSave,
    session: SaveProductSessionDep,
    history: HistoryServiceDep,
) -> SaveResponse:
    """Store a translated product package under the caller's session."""
    owner = resolve_owner(session, payload.session_id)
    _check_image(payload.image_base64)
    record = history.save_product(owner, payload.product_items, payload.image_base64)
    return SaveResponse(id=record.id)
