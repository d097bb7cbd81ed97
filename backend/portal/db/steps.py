"""Module: steps."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.errors import InternalError

logger = logging.getLogger(__name__)


def commit_step(db: Session, step: str) -> None:
    """Commit the pending unit of work; any store failure becomes a 500 naming ``step``."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database step '%s' failed", step, exc_info=True)
        raise InternalError(f"Failed to {step}", {"step": step}) from exc
