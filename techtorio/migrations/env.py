"""Alembic environment for TechTorio.

Runs under ``flask db ...`` (reusing the app's engine) or under plain
``alembic`` with ``alembic.ini``, where the URL comes from ``sqlalchemy.url``
or from the config selected by ``techtorio_env``.
"""

from __future__ import annotations

import logging
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from flask import current_app, has_app_context
from sqlalchemy import create_engine, pool

sys.path.append(str(Path(__file__).resolve().parents[2]))

from techtorio import create_app
from techtorio.extensions import db

config = context.config
logger = logging.getLogger("alembic.env")

if config.config_file_name and Path(config.config_file_name).exists():
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = db.metadata


def _database_url() -> str:
    explicit = config.get_main_option("sqlalchemy.url")
    if explicit:
        return explicit
    if has_app_context():
        return current_app.config["SQLALCHEMY_DATABASE_URI"]
    app = create_app(config.get_main_option("techtorio_env", "development"))
    return app.config["SQLALCHEMY_DATABASE_URI"]


def _skip_empty_autogenerate(context_, revision, directives) -> None:
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []
        logger.info("No schema changes detected; revision not written.")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        process_revision_directives=_skip_empty_autogenerate,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    if has_app_context() and not config.get_main_option("sqlalchemy.url"):
        engine = db.engine
    else:
        engine = create_engine(_database_url(), poolclass=pool.NullPool)

    with engine.connect() as connection:
        # sqlite cannot ALTER most constraints in place
        _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
