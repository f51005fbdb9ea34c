# src/menu_lens/models/analysis.py
"""SQLAlchemy models for translated menu and product analyses."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from menu_lens.db.session import Base
from menu_lens.utils.time import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class AnalysisMixin:
    """Columns shared by every analysis kind.

    ``session_id`` is the ``sid`` of the token the row was created under and is
    the only ownership marker; there are no user accounts.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    session_id: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class MenuAnalysis(AnalysisMixin, Base):
    """A translated restaurant menu."""

    __tablename__ = "menu_analyses"
    __table_args__ = (
        Index("idx_menu_analyses_session_id", "session_id"),
        Index("idx_menu_analyses_created_at", "created_at"),
        Index("idx_menu_analyses_is_favorite", "is_favorite"),
    )

    menu_items: Mapped[list[dict[str, object]]] = mapped_column(JSON, nullable=False, default=list)
    # Filled in by the external file-storage / spreadsheet integration.
    drive_file_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    sheet_row_id: Mapped[str | None] = mapped_column(Text, nullable=True)


class ProductAnalysis(AnalysisMixin, Base):
    """A translated product package."""

    __tablename__ = "product_analyses"
    __table_args__ = (
        Index("idx_product_analyses_session_id", "session_id"),
        Index("idx_product_analyses_created_at", "created_at"),
        Index("idx_product_analyses_is_favorite", "is_favorite"),
    )

    product_items: Mapped[list[dict[str, object]]] = mapped_column(
        JSON, nullable=False, default=list
    )
