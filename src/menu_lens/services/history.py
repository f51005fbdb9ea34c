"""Persistence of translated analyses scoped to a browser session."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from menu_lens.core.errors import Unauthorized
from menu_lens.models import MenuAnalysis, ProductAnalysis
from menu_lens.services.images import image_preview

logger = logging.getLogger(__name__)

AnalysisModel = type[MenuAnalysis] | type[ProductAnalysis]

_MODELS: dict[str, AnalysisModel] = {
    "menu": MenuAnalysis,
    "product": ProductAnalysis,
}


class RecordNotFoundError(LookupError):
    """Raised when an analysis id does not exist."""


class HistoryService:
    """Create, list and favorite analyses owned by a session identifier."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def save_menu(
        self,
        session_id: str,
        menu_items: list[dict[str, Any]],
        image_base64: str | None = None,
    ) -> MenuAnalysis:
        record = MenuAnalysis(
            session_id=session_id,
            menu_items=menu_items,
            image_url=image_preview(image_base64),
        )
        self._db.add(record)
        self._db.commit()
        self._db.refresh(record)
        logger.info("Menu saved: %s", record.id)
        return record

    def save_product(
        self,
        session_id: str,
        product_items: list[dict[str, Any]],
        image_base64: str | None = None,
    ) -> ProductAnalysis:
        record = ProductAnalysis(
            session_id=session_id,
            product_items=product_items,
            image_url=image_preview(image_base64),
        )
        self._db.add(record)
        self._db.commit()
        self._db.refresh(record)
        logger.info("Product saved: %s", record.id)
        return record

    def list_history(
        self,
        session_id: str,
        *,
        kind: str = "all",
        favorites_only: bool = False,
        limit: int = 50,
    ) -> tuple[list[MenuAnalysis], list[ProductAnalysis]]:
        """Return the newest analyses for ``session_id``, menus then products."""
        menus: list[MenuAnalysis] = []
        products: list[ProductAnalysis] = []
        if kind in ("all", "menu"):
            menus = list(self._query(MenuAnalysis, session_id, favorites_only, limit))
        if kind in ("all", "product"):
            products = list(self._query(ProductAnalysis, session_id, favorites_only, limit))
        logger.info("History fetched: %d menus, %d products", len(menus), len(products))
        return menus, products

    def _query(self, model: Any, session_id: str, favorites_only: bool, limit: int) -> Any:
        stmt = select(model).where(model.session_id == session_id)
        if favorites_only:
            stmt = stmt.where(model.is_favorite.is_(True))
        stmt = stmt.order_by(model.created_at.desc()).limit(limit)
        return self._db.scalars(stmt)

    def set_favorite(
        self,
        kind: str,
        record_id: str,
        is_favorite: bool,
        *,
        session_id: str,
    ) -> bool:
        """Update the favorite flag after checking the caller owns the record.

        Raises:
            ValueError: If ``kind`` is not a known analysis type.
            RecordNotFoundError: If no record has ``record_id``.
            Unauthorized: If the record belongs to another session.
        """
        model = _MODELS.get(kind)
        if model is None:
            raise ValueError(f"Unknown analysis type: {kind!r}")

        record = self._db.get(model, record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        if record.session_id != session_id:
            logger.warning("Ownership check failed for %s %s", kind, record_id)
            raise Unauthorized(f"{kind} {record_id} belongs to another session")

        record.is_favorite = is_favorite
        self._db.commit()
        logger.info("Favorite toggled: %s %s -> %s", kind, record_id, is_favorite)
        return record.is_favorite


def get_history_service(db: Session) -> HistoryService:
    """Return a history service bound to ``db``."""
    return HistoryService(db)
