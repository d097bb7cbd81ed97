"""Module: session."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from portal.core.config import get_settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    engine_kwargs = {
        "future": True,
        "pool_pre_ping": True,
    }
    # SQLite has different pooling requirements
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(database_url, **engine_kwargs)


engine = build_engine(get_settings().database_url)

# One session per request; see api.v1.routes.deps.get_db.
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

logger.info("Database engine configured for dialect %s", engine.dialect.name)
