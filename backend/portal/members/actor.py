"""Module: actor."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.errors import InsufficientPermissions, InsufficientRoles, InternalError, Unauthorized
from portal.core.security import get_bearer_token
from portal.db.models.user_role import UserRole
from portal.members.roles import AppRole, parse_role, primary_role

logger = logging.getLogger(__name__)


# Caller identity for one request; built once from the bearer token and passed down explicitly.
@dataclass(frozen=True)
class Actor:
    id: uuid.UUID
    roles: frozenset[AppRole]
    email: str | None = None

    @property
    def role(self) -> AppRole:
        return primary_role(self.roles)

    @property
    def is_admin(self) -> bool:
        return AppRole.ADMIN in self.roles

    def has_any(self, allowed: frozenset[AppRole]) -> bool:
        return bool(self.roles & allowed)


def load_roles(db: Session, user_id: uuid.UUID) -> frozenset[AppRole]:
    try:
        stored = db.execute(select(UserRole.role).where(UserRole.user_id == user_id)).scalars().all()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Role lookup failed for %s", user_id, exc_info=True)
        raise InternalError("Failed to load roles") from exc
    return frozenset(role for role in map(parse_role, stored) if role is not None)


def resolve_actor(db: Session, auth, authorization: str | None) -> Actor:
    token = get_bearer_token(authorization)
    user = auth.get_user(token)

    try:
        actor_id = uuid.UUID(user.id)
    except ValueError:
        raise Unauthorized("Invalid or expired token")

    roles = load_roles(db, actor_id)
    if not roles:
        logger.warning("Caller %s has no roles", actor_id)
        raise InsufficientRoles()

    return Actor(id=actor_id, roles=roles, email=user.email)


def require_roles(actor: Actor, allowed: frozenset[AppRole], action: str) -> None:
    if actor.has_any(allowed):
        return
    logger.warning("Caller %s denied %s (roles: %s)", actor.id, action, sorted(r.value for r in actor.roles))
    raise InsufficientPermissions(
        details={"action": action, "required": sorted(role.value for role in allowed)},
    )
