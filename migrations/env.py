"""Alembic environment for the settlement schema.

``DATABASE_URL`` from the environment wins over ``sqlalchemy.url`` in
alembic.ini. Run from the repository root so ``settlement`` is importable.
"""

from logging.config import fileConfig
import os

from alembic import context
from sqlalchemy import engine_from_config, pool

from settlement.database.db import Base
import settlement.database.models  # noqa: F401  (registers tables on Base.metadata)

alembic_cfg = context.config
target_metadata = Base.metadata

if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name, disable_existing_loggers=False)


def database_url() -> str:
    url = os.getenv("DATABASE_URL") or alembic_cfg.get_main_option("sqlalchemy.url")
    # Heroku-style URLs use the deprecated "postgres" scheme.
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def run_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    section = alembic_cfg.get_section(alembic_cfg.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # Batch mode lets ALTER-style migrations run on SQLite.
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
