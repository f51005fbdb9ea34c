"""History listing and favorite toggling for the caller's session."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from menu_lens.api.v1.dependencies import CurrentSessionDep, HistoryServiceDep, resolve_owner
from menu_lens.core.errors import NOT_AUTHORIZED_MESSAGE, Unauthorized
from menu_lens.core.settings import settings
from menu_lens.schemas.history import (
    FavoriteResponse,
    FavoriteToggle,
    HistoryData,
    HistoryResponse,
    HistoryType,
    MenuAnalysisResponse,
    ProductAnalysisResponse,
)
from menu_lens.services.history import RecordNotFoundError

router = APIRouter(tags=["history"])


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    session: CurrentSessionDep,
    history: HistoryServiceDep,
    kind: Annotated[HistoryType, Query(alias="type")] = "all",
    favorites: Annotated[bool, Query()] = False,
    limit: Annotated[int, Query(ge=1)] = settings.history_default_limit,
    session_id: Annotated[str | None, Query(alias="sessionId")] = None,
) -> HistoryResponse:
    """List saved analyses for the token's session, newest first.

    Args:
        kind: Which analyses to return: ``all``, ``menu`` or ``product``
        favorites: Only return favorited analyses
        limit: Maximum rows per analysis type, capped by configuration
        session_id: Optional explicit session id; must match the token
    """
    owner = resolve_owner(session, session_id)
    menus, products = history.list_history(
        owner,
        kind=kind,
        favorites_only=favorites,
        limit=min(limit, settings.history_max_limit),
    )
    return HistoryResponse(
        data=HistoryData(
            menus=[MenuAnalysisResponse.model_validate(row) for row in menus],
            products=[ProductAnalysisResponse.model_validate(row) for row in products],
        )
    )


@router.post("/favorites", response_model=FavoriteResponse)
async def toggle_favorite(
    payload: FavoriteToggle,
    session: CurrentSessionDep,
    history: HistoryServiceDep,
) -> FavoriteResponse:
    """Mark or unmark an analysis owned by the caller's session as favorite."""
    owner = resolve_owner(session, payload.session_id)
    try:
        is_favorite = history.set_favorite(
            payload.type,
            payload.id,
            payload.is_favorite,
            session_id=owner,
        )
    except RecordNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Record not found",
        ) from err
    except Unauthorized as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=NOT_AUTHORIZED_MESSAGE,
        ) from err

    return FavoriteResponse(is_favorite=is_favorite)
