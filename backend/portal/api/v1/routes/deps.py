"""Module: deps."""

from typing import Generator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from portal.core.config import get_settings
from portal.db.session import SessionLocal
from portal.integrations.supabase_auth import SupabaseAuthClient
from portal.members.actor import Actor, resolve_actor


# Dependency provider: one DB session per request lifecycle.
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_auth_client() -> SupabaseAuthClient:
    settings = get_settings()
    return SupabaseAuthClient(
        base_url=settings.supabase_url,
        service_role_key=settings.supabase_service_role_key,
        timeout=settings.auth_timeout_seconds,
    )


# Resolved before the request body is looked at, so unauthenticated calls never reach an action.
def get_actor(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
    auth: SupabaseAuthClient = Depends(get_auth_client),
) -> Actor:
    return resolve_actor(db, auth, authorization)
