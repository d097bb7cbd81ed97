"""Module: audit."""

from typing import Any

from sqlalchemy.orm import Session

from portal.db.models.admin_audit_log import AdminAuditLog
from portal.db.steps import commit_step


def log_admin_action(
    db: Session,
    actor,
    action: str,
    entity_type: str,
    entity_id: str | None,
    details: dict[str, Any] | None = None,
) -> AdminAuditLog:
    """
    Store one admin audit entry attributed to ``actor``.
    """
    entry = AdminAuditLog(
        actor_id=actor.id,
        actor_role=actor.role.value,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.add(entry)
    commit_step(db, f"write audit entry '{action}'")
    return entry
