"""Alembic environment for the Menu Lens history tables.

The database URL comes from ``ALEMBIC_URL`` when set, then from an explicit
``sqlalchemy.url`` (as ``menu_lens.scripts.migrate`` passes it), and finally
from ``DATABASE_URL`` through the application settings.
"""
from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, make_url, pool

from menu_lens.core.settings import settings
from menu_lens.db.session import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def resolve_database_url() -> str:
    url = os.getenv("ALEMBIC_URL") or config.get_main_option("sqlalchemy.url")
    return url or settings.database_url


def _context_options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place; batch mode recreates tables.
    return {
        "target_metadata": target_metadata,
        "render_as_batch": url.startswith("sqlite"),
        "include_name": _only_known_tables,
        "compare_type": True,
    }


def _only_known_tables(name, type_, parent_names) -> bool:
    """Keep autogenerate away from tables this service does not own."""
    if type_ == "table":
        return name in target_metadata.tables
    return True


def run_migrations_offline(url: str) -> None:
    """Emit SQL for ``url`` without connecting."""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_context_options(url))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


database_url = resolve_database_url()
logger.info("Migrating %s", make_url(database_url).render_as_string(hide_password=True))

if context.is_offline_mode():
    run_migrations_offline(database_url)
else:
    run_migrations_online(database_url)
