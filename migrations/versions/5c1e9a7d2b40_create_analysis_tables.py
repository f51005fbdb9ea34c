"""create analysis tables

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-01-14 00:27:19.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _analysis_columns(items_column: str) -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column(items_column, sa.JSON(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade() -> None:
    """Create menu and product analysis tables with their lookup indexes."""
    op.create_table(
        "menu_analyses",
        *_analysis_columns("menu_items"),
        sa.Column("drive_file_id", sa.Text(), nullable=True),
        sa.Column("sheet_row_id", sa.Text(), nullable=True),
    )
    op.create_table("product_analyses", *_analysis_columns("product_items"))

    for table in ("menu_analyses", "product_analyses"):
        for column in ("session_id", "created_at", "is_favorite"):
            op.create_index(f"idx_{table}_{column}", table, [column])


def downgrade() -> None:
    """Drop analysis tables."""
    for table in ("product_analyses", "menu_analyses"):
        for column in ("is_favorite", "created_at", "session_id"):
            op.drop_index(f"idx_{table}_{column}", table_name=table)
        op.drop_table(table)
