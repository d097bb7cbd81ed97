from sqlalchemy.engine import Engine

from portal.db.session import engine
from portal.db.base import Base

# IMPORTANT: import models so they register with Base.metadata
import portal.db.models  # noqa: F401


def init_db(bind: Engine = engine) -> None:
    Base.metadata.create_all(bind=bind)
