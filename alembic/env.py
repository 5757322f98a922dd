"""Alembic environment configuration."""

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import engine_from_config, pool

from alembic import context

# Add the parent directory to Python path so we can import education_api
sys.path.insert(0, str(Path(__file__).parent.parent))

from education_api.config import settings  # noqa: E402
from education_api.db.base import Base  # noqa: E402
from education_api import models  # noqa: E402,F401

# Alembic Config object
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata
target_metadata = Base.metadata


def sync_database_url(url: str) -> str:
    """Convert the asyncpg URL to a psycopg2 URL for synchronous migrations."""
    if not url.startswith("postgresql+asyncpg://"):
        return url
    url = url.replace("postgresql+asyncpg://", "postgresql://")
    # asyncpg uses 'ssl=...', psycopg2 uses 'sslmode=...'
    for separator in ("?", "&"):
        url = url.replace(f"{separator}ssl=false", f"{separator}sslmode=disable")
        url = url.replace(f"{separator}ssl=true", f"{separator}sslmode=require")
        url = url.replace(f"{separator}ssl=require", f"{separator}sslmode=require")
    return url


config.set_main_option("sqlalchemy.url", sync_database_url(settings.DATABASE_URL))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
