"""Module: roles."""

from enum import Enum


class AppRole(str, Enum):
    ADMIN = "admin"
    CHAIRPERSON = "chairperson"
    VICE_CHAIRMAN = "vice_chairman"
    SECRETARY = "secretary"
    VICE_SECRETARY = "vice_secretary"
    TREASURER = "treasurer"
    ORGANIZING_SECRETARY = "organizing_secretary"
    COORDINATOR = "coordinator"
    COMMITTEE_MEMBER = "committee_member"
    PATRON = "patron"
    MEMBER = "member"


# Every role except the base membership role.
ELEVATED_ROLES = frozenset(role for role in AppRole if role is not AppRole.MEMBER)
OFFICIAL_ROLES = ELEVATED_ROLES
ASSIGNABLE_ROLES = OFFICIAL_ROLES

ADMIN_ONLY = frozenset({AppRole.ADMIN})
ROLE_MANAGERS = frozenset({AppRole.ADMIN, AppRole.CHAIRPERSON})

ROLE_RANK = {
    AppRole.ADMIN: 100,
    AppRole.CHAIRPERSON: 90,
    AppRole.VICE_CHAIRMAN: 80,
    AppRole.TREASURER: 70,
    AppRole.SECRETARY: 60,
    AppRole.VICE_SECRETARY: 50,
    AppRole.ORGANIZING_SECRETARY: 40,
    AppRole.COMMITTEE_MEMBER: 30,
    AppRole.PATRON: 20,
    AppRole.COORDINATOR: 20,
    AppRole.MEMBER: 10,
}

ROLE_LABELS = {
    AppRole.ADMIN: "Administrator",
    AppRole.CHAIRPERSON: "Chairperson",
    AppRole.VICE_CHAIRMAN: "Vice Chairman",
    AppRole.SECRETARY: "Secretary",
    AppRole.VICE_SECRETARY: "Vice Secretary",
    AppRole.TREASURER: "Treasurer",
    AppRole.ORGANIZING_SECRETARY: "Organizing Secretary",
    AppRole.COORDINATOR: "Coordinator",
    AppRole.COMMITTEE_MEMBER: "Committee Member",
    AppRole.PATRON: "Patron",
    AppRole.MEMBER: "Member",
}


def parse_role(value: str | None) -> AppRole | None:
    """Map a stored role string to ``AppRole``; unknown values yield ``None``."""
    if not value:
        return None
    try:
        return AppRole(value.strip().lower())
    except ValueError:
        return None


def primary_role(roles) -> AppRole:
    # Highest ranked role; ties resolve by enum order.
    ordered = [role for role in AppRole if role in roles]
    if not ordered:
        return AppRole.MEMBER
    return max(ordered, key=lambda role: ROLE_RANK[role])
