from logging.config import fileConfig
import os
import sys

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context
import re

# backend/ holds the thread_inbox package; make it importable from alembic/.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '.')))


# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from thread_inbox.database import Base
# Import the models so every table is registered on Base.metadata
from thread_inbox import models  # noqa: F401

target_metadata = Base.metadata


def _env_db_url() -> str | None:
    url = os.getenv("DB_URL") or os.getenv("SQLALCHEMY_DATABASE_URL")
    if url:
        return url
    from thread_inbox.core.config import settings

    return settings.SQLALCHEMY_DATABASE_URL


def _mask(url: str) -> str:
    return re.sub(r"(postgres(?:ql)?\+?[^:]*://[^:/]+:)([^@]+)(@)", r"\1****\3", url or "")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Configures the context with just a URL; calls to context.execute()
    emit the given string to the script output.
    """
    url = _env_db_url() or config.get_main_option("sqlalchemy.url")
    print(f"[alembic] Using DB URL (offline): {_mask(url)}")

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        version_table="alembic_version",
        render_as_batch=str(url).startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    section = config.get_section(config.config_ini_section, {}) or {}
    env_url = _env_db_url()
    if env_url:
        section["sqlalchemy.url"] = env_url
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        is_sqlite = connection.dialect.name == "sqlite"
        print(f"[alembic] Connected ({connection.dialect.name}): {_mask(section.get('sqlalchemy.url', ''))}")

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            version_table="alembic_version",
            render_as_batch=is_sqlite,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
