"""Module: lifecycle.

High-impact member state changes run through the admin endpoint: suspend,
reject, approve, permanently delete and official-role assignment. Every
operation takes the resolved ``Actor`` explicitly and returns the success body.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any, assert_never

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.errors import Conflict, InsufficientPermissions, InternalError, NotFound, ValidationError
from portal.core.security import confirmation_matches, expected_confirmation, redacted_phone
from portal.db.models.profile import Profile
from portal.db.models.user_role import UserRole
from portal.db.steps import commit_step
from portal.members.actions import (
    AdminAction,
    ApprovePayment,
    ApproveUser,
    AssignOfficialRole,
    DeleteMember,
    LogAction,
    RejectMember,
    SuspendMember,
)
from portal.members.actor import Actor, load_roles, require_roles
from portal.members.audit import log_admin_action
from portal.members.cleanup import run_cleanup
from portal.members.notify import notify_member
from portal.members.roles import (
    ASSIGNABLE_ROLES,
    ELEVATED_ROLES,
    OFFICIAL_ROLES,
    ROLE_LABELS,
    AppRole,
    parse_role,
)

logger = logging.getLogger(__name__)

REDACTED_NAME = "Redacted Member"
REDACTED_VALUE = "REDACTED"

DEFAULT_SUSPENSION_MESSAGE = (
    "Your membership has been suspended. Please contact the association officials for more information."
)
DEFAULT_REJECTION_MESSAGE = (
    "Your membership application has been rejected. Please contact the association officials for more information."
)


def _load_profile(db: Session, member_id: uuid.UUID) -> Profile:
    try:
        profile = db.execute(select(Profile).where(Profile.id == member_id)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Profile lookup failed for %s", member_id, exc_info=True)
        raise InternalError("Failed to load member profile") from exc
    if not profile:
        raise NotFound("Member not found", {"member_id": str(member_id)})
    return profile


def _clear_deletion(profile: Profile) -> None:
    profile.soft_deleted = False
    profile.deleted_at = None
    profile.deleted_by = None


def _redact(profile: Profile, actor: Actor) -> None:
    profile.status = "suspended"
    profile.soft_deleted = True
    profile.deleted_at = datetime.now(UTC)
    profile.deleted_by = actor.id
    profile.full_name = REDACTED_NAME
    profile.id_number = REDACTED_VALUE
    profile.location = REDACTED_VALUE
    profile.occupation = REDACTED_VALUE
    profile.email = None
    profile.membership_number = None
    profile.phone = redacted_phone(str(profile.id))


def _drop_official_roles(db: Session, member_id: uuid.UUID) -> None:
    db.execute(
        delete(UserRole).where(
            UserRole.user_id == member_id,
            UserRole.role != AppRole.MEMBER.value,
        )
    )
    commit_step(db, "remove official roles")


# Permanent deletion

def _check_permanent_delete(
    db: Session,
    actor: Actor,
    member_id: uuid.UUID,
    confirmation: str | None,
    force: bool,
) -> Profile:
    # Every precondition is checked before anything is written.
    if member_id == actor.id:
        raise Conflict("You cannot delete your own account")
    require_roles(actor, DeleteMember.allowed_roles, "delete_member")

    profile = _load_profile(db, member_id)

    expected = expected_confirmation(str(profile.id), profile.membership_number)
    if not confirmation_matches(confirmation, expected):
        raise ValidationError("Confirmation text mismatch", {"expected": expected})

    held = sorted(role.value for role in load_roles(db, member_id) if role in OFFICIAL_ROLES)
    if held and not force:
        raise Conflict(
            "Member holds an official role. Suspend the member first or retry with force=true.",
            {"roles": held},
        )
    return profile


def _purge_member(db: Session, auth, actor: Actor, snapshot: dict[str, Any], force: bool) -> None:
    member_id = uuid.UUID(snapshot["id"])

    report = run_cleanup(db, member_id)
    logger.info("Cleanup report for %s: %s", member_id, report)

    auth.delete_user(str(member_id), should_soft_delete=False)

    # The auth provider may not cascade into profiles.
    db.execute(delete(Profile).where(Profile.id == member_id))
    commit_step(db, "delete member profile")

    log_admin_action(
        db,
        actor,
        "member_permanently_deleted",
        "member",
        str(member_id),
        {
            "full_name": snapshot["full_name"],
            "membership_number": snapshot["membership_number"],
            "email": snapshot["email"],
            "phone": snapshot["phone"],
            "force": force,
        },
    )
    logger.info("Member %s permanently deleted by %s", member_id, actor.id)


def delete_member(db: Session, auth, actor: Actor, payload: DeleteMember) -> dict[str, Any]:
    profile = _check_permanent_delete(db, actor, payload.member_id, payload.confirmation, payload.force)
    snapshot = profile.snapshot()
    _purge_member(db, auth, actor, snapshot, payload.force)
    return {"ok": True, "deleted": snapshot["id"], "profile": snapshot}


# Suspension, rejection, approval

def suspend_member(db: Session, auth, actor: Actor, payload: SuspendMember) -> dict[str, Any]:
    if payload.mode == "permanent":
        return delete_member(
            db,
            auth,
            actor,
            DeleteMember(
                action="delete_member",
                member_id=payload.member_id,
                confirmation=payload.confirmation,
                force=payload.force,
            ),
        )

    profile = _load_profile(db, payload.member_id)
    profile.status = "suspended"
    _clear_deletion(profile)
    commit_step(db, "suspend member")

    notify_member(
        db,
        profile.id,
        "Membership Suspended",
        payload.reason or DEFAULT_SUSPENSION_MESSAGE,
        "suspension",
    )
    log_admin_action(db, actor, "member_suspended", "member", str(profile.id), {"reason": payload.reason})
    logger.info("Member %s suspended by %s", profile.id, actor.id)
    return {"ok": True, "member_id": str(profile.id), "status": "suspended"}


def reject_member(db: Session, auth, actor: Actor, payload: RejectMember) -> dict[str, Any]:
    snapshot = None
    if payload.delete_account:
        profile = _check_permanent_delete(db, actor, payload.member_id, payload.confirmation, payload.force)
        snapshot = profile.snapshot()
    else:
        profile = _load_profile(db, payload.member_id)

    member_id = profile.id
    _redact(profile, actor)
    commit_step(db, "redact member profile")
    _drop_official_roles(db, member_id)

    notify_member(
        db,
        member_id,
        "Membership Application Rejected",
        payload.reason or DEFAULT_REJECTION_MESSAGE,
        "rejection",
    )

    if snapshot is not None:
        _purge_member(db, auth, actor, snapshot, payload.force)

    log_admin_action(
        db,
        actor,
        "member_rejected",
        "member",
        str(member_id),
        {
            "reason": payload.reason,
            "delete_account": payload.delete_account,
            "force": payload.force,
        },
    )
    logger.info("Member %s rejected by %s (delete_account=%s)", member_id, actor.id, payload.delete_account)
    return {"ok": True, "member_id": str(member_id), "deleted": payload.delete_account}


def approve_user(db: Session, auth, actor: Actor, payload: ApproveUser) -> dict[str, Any]:
    profile = _load_profile(db, payload.user_id)
    profile.status = "active"
    _clear_deletion(profile)
    commit_step(db, "approve member")

    notify_member(
        db,
        profile.id,
        "Membership Approved",
        "Your membership has been approved. Welcome to the association!",
        "approval",
        action_url="/dashboard",
    )
    log_admin_action(db, actor, "user_approved", "user", str(profile.id))
    logger.info("Member %s approved by %s", profile.id, actor.id)
    return {"ok": True, "user_id": str(profile.id), "status": "active"}


def approve_payment(db: Session, auth, actor: Actor, payload: ApprovePayment) -> dict[str, Any]:
    # Payment state itself is owned by the payments service; this only records the decision.
    log_admin_action(db, actor, "payment_approved", "payment", payload.payment_id)
    return {"ok": True, "payment_id": payload.payment_id}


def log_action(db: Session, auth, actor: Actor, payload: LogAction) -> dict[str, Any]:
    log_admin_action(db, actor, payload.event, payload.entity_type, payload.entity_id, payload.details)
    return {"ok": True}


# Official roles

def _blank(value: str | None) -> bool:
    return not (value or "").strip()


def _check_role_eligibility(profile: Profile) -> None:
    if profile.status != "active":
        raise ValidationError("Member must be active to hold an official role", {"status": profile.status})
    if not profile.registration_fee_paid:
        raise ValidationError("Member has not paid the registration fee")
    for field in ("membership_number", "full_name", "phone", "id_number"):
        if _blank(getattr(profile, field)):
            raise ValidationError(f"Member profile is missing {field}", {"field": field})


def assign_official_role(db: Session, auth, actor: Actor, payload: AssignOfficialRole) -> dict[str, Any]:
    require_roles(actor, AssignOfficialRole.allowed_roles, "assign_official_role")

    role = parse_role(payload.role)
    if role is None or role not in ASSIGNABLE_ROLES:
        raise ValidationError(
            "Invalid role",
            {"role": payload.role, "allowed": sorted(r.value for r in ASSIGNABLE_ROLES)},
        )
    if role is AppRole.ADMIN and not actor.is_admin:
        logger.warning("Caller %s denied granting admin to %s", actor.id, payload.user_id)
        raise InsufficientPermissions(
            details={"action": "assign_official_role", "role": role.value, "required": [AppRole.ADMIN.value]},
        )
    # Assigning replaces every official role, so a caller would also drop their own.
    if payload.user_id == actor.id:
        raise InsufficientPermissions("You cannot change your own role", {"action": "assign_official_role"})

    profile = _load_profile(db, payload.user_id)
    _check_role_eligibility(profile)

    has_member_role = db.execute(
        select(UserRole.id).where(
            UserRole.user_id == profile.id,
            UserRole.role == AppRole.MEMBER.value,
        )
    ).scalar_one_or_none()
    if not has_member_role:
        db.add(UserRole(user_id=profile.id, role=AppRole.MEMBER.value, assigned_by=actor.id))
        commit_step(db, "ensure member role")

    # At most one official role per member.
    _drop_official_roles(db, profile.id)

    db.add(UserRole(user_id=profile.id, role=role.value, assigned_by=actor.id))
    commit_step(db, "assign official role")

    label = ROLE_LABELS[role]
    notify_member(
        db,
        profile.id,
        "Official Role Assigned",
        f"You have been assigned the official role of {label}.",
        "role_assignment",
        action_url="/dashboard",
    )
    log_admin_action(db, actor, "official_role_assigned", "user", str(profile.id), {"role": role.value})
    logger.info("Role %s assigned to %s by %s", role.value, profile.id, actor.id)
    return {"ok": True, "user_id": str(profile.id), "role": role.value}


def execute(db: Session, auth, actor: Actor, action: AdminAction) -> dict[str, Any]:
    """Run one admin action for ``actor``."""
    require_roles(actor, ELEVATED_ROLES, action.action)

    match action:
        case LogAction():
            return log_action(db, auth, actor, action)
        case SuspendMember():
            return suspend_member(db, auth, actor, action)
        case DeleteMember():
            return delete_member(db, auth, actor, action)
        case RejectMember():
            return reject_member(db, auth, actor, action)
        case ApproveUser():
            return approve_user(db, auth, actor, action)
        case ApprovePayment():
            return approve_payment(db, auth, actor, action)
        case AssignOfficialRole():
            return assign_official_role(db, auth, actor, action)
        case _:
            assert_never(action)
