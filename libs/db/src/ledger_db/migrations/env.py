# ruff: noqa: I001
"""
Alembic configuration for the `ledger_db` library.

Two ways in:

- Programmatic (the normal path): ``ledger_db.migrate.upgrade_schema`` hands an
  open connection through ``config.attributes["connection"]`` so migrations
  run on the already-unlocked vault engine.
- Standalone ``alembic`` invocations: the URL comes from the
  ``LEDGER_DATABASE_URL`` environment variable (a workspace ``.env`` is loaded
  first) or ``sqlalchemy.url`` in the ini file.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from dotenv import load_dotenv, find_dotenv

from ledger_db import metadata as target_metadata

# Alembic Config object, which provides access to the values within
# the .ini file in use (if any).
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)



def _standalone_url() -> str:
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)
    url = os.getenv("LEDGER_DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "LEDGER_DATABASE_URL is not set. Provide it via environment or set "
            "'sqlalchemy.url' in alembic.ini."
        )
    return url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=_standalone_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    shared = config.attributes.get("connection")
    if shared is not None:
        context.configure(
            connection=shared,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()
        return

    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = _standalone_url()
    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
