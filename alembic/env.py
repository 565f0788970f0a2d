"""Alembic environment for the registry schema.

The database URL comes from DATABASE_URL via cert_registry.core.config,
the same source the running service uses, so migrations and the app can
never point at different databases.
"""

from __future__ import annotations

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context
from cert_registry.core.config import SETTINGS
from cert_registry.db.engine import Base

config = context.config

if SETTINGS.database_url:
    # The service talks asyncpg; Alembic migrates synchronously (psycopg2).
    config.set_main_option(
        "sqlalchemy.url",
        SETTINGS.database_url.replace("postgresql+asyncpg", "postgresql"),
    )

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Registers RegistryEntryRow on Base.metadata for autogenerate.
import cert_registry.db.tables  # noqa: E402, F401

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live database (alembic upgrade --sql)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    if not SETTINGS.database_url:
        raise RuntimeError("DATABASE_URL must be set to run migrations online")

    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
