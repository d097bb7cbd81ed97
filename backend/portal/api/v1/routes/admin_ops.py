"""Module: admin_ops."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from portal.api.v1.routes.deps import get_actor, get_auth_client, get_db
from portal.core.errors import ValidationError
from portal.integrations.supabase_auth import SupabaseAuthClient
from portal.members.actions import parse_action
from portal.members.actor import Actor
from portal.members.lifecycle import execute

logger = logging.getLogger(__name__)

router = APIRouter()


# Depends on the actor so the body is only read once the caller is authenticated.
async def read_json_body(request: Request, actor: Actor = Depends(get_actor)) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Invalid JSON payload") from exc


# Endpoint: single entry point for member lifecycle and audit actions.
@router.post("", summary="Run an administrative member action")
def admin_ops(
    body: Any = Depends(read_json_body),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    auth: SupabaseAuthClient = Depends(get_auth_client),
):
    action = parse_action(body)
    logger.info("Admin action %s requested by %s", action.action, actor.id)
    return execute(db, auth, actor, action)
