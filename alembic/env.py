from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

load_dotenv()

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _database_url() -> str:
    # an explicit sqlalchemy.url (scripts, tests) wins over the environment
    url = config.get_main_option("sqlalchemy.url") or os.getenv("DATABASE_URL") or os.getenv(
        "SQLALCHEMY_DATABASE_URL"
    )
    if not url:
        raise RuntimeError("Set sqlalchemy.url or DATABASE_URL before running migrations.")
    return url


def _target_metadata():
    os.environ.setdefault("DATABASE_URL", _database_url())
    from backend.app.db import Base
    import backend.app.models  # noqa: F401

    return Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=_target_metadata(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=_target_metadata(),
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
