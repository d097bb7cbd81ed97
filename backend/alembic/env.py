from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from alembic import context
from pydantic import ValidationError
from sqlalchemy import engine_from_config, pool

# Allow importing portal.*
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from portal.core.config import get_settings  # noqa
from portal.db.base import Base  # noqa
import portal.db.models  # noqa  (registers profiles, user_roles, notifications, admin_audit_log)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_database_url() -> str:
    # Environment and .env (via Settings) win; alembic.ini is the local fallback.
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    try:
        return get_settings().database_url
    except ValidationError:
        return config.get_main_option("sqlalchemy.url")


def include_object(obj, name, type_, reflected, compare_to):
    # The hosted portal database holds many tables this service does not model
    # (contributions, messages, welfare_cases, ...). Never autogenerate drops for them.
    if type_ == "table" and reflected and compare_to is None:
        return False
    return True


def _configure(url: str, **kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        include_object=include_object,
        # SQLite needs batch mode for ALTER TABLE in later revisions.
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    url = get_database_url()
    _configure(url, url=url, literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_database_url()
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = url

    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool, future=True)

    with connectable.connect() as connection:
        _configure(url, connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
