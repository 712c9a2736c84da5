# alembic/env.py
"""Alembic environment bound to the application settings and ledger models."""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from fund_positions.config import settings
from fund_positions.models import Base

config = context.config

# Escape '%' for configparser interpolation
config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


# =============================================================================
# OFFLINE MIGRATIONS (emit SQL without a live connection)
# =============================================================================

def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


# =============================================================================
# ONLINE MIGRATIONS
# =============================================================================

def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
