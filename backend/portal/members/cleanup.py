"""Module: cleanup.

Ordered plan of per-relation operations that remove every reference to a member
before the member's account and profile are permanently deleted.

Each step either deletes rows the member owns or nulls an attribution column on
rows the member only touched. Steps marked ``optional`` address relations that
only exist when the matching portal feature is installed; when such a relation
(or column) is absent the step is skipped. A missing relation on a required step,
or any store error, aborts the run with ``CleanupFailed`` naming the step.
Every step commits on its own and can be re-run safely.

Attribution columns declared NOT NULL (``discipline_records.recorded_by``,
``meeting_minutes.recorded_by``, ``meetings.created_by``,
``voting_motions.created_by``, ``documents.uploaded_by``,
``role_handovers.created_by``) cannot be nulled and are not in the plan. Rows
using them keep the deleted member's id as a dangling reference; reassign
them before deleting a member who authored such records.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import Uuid, bindparam, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.errors import CleanupFailed

logger = logging.getLogger(__name__)


class StepKind(str, Enum):
    DELETE = "delete"
    NULLIFY = "nullify"


@dataclass(frozen=True)
class CleanupStep:
    name: str
    table: str
    column: str
    kind: StepKind = StepKind.DELETE
    optional: bool = True
    # (parent_table, parent_column): match rows whose ``column`` points at a parent
    # row (by its ``id``) that references the member through ``parent_column``.
    parent: tuple[str, str] | None = None

    def relations(self) -> list[tuple[str, str]]:
        needed = [(self.table, self.column)]
        if self.parent:
            needed.append(self.parent)
        return needed

    def statement(self, quote):
        table, column = quote(self.table), quote(self.column)
        if self.parent:
            parent_table, parent_column = quote(self.parent[0]), quote(self.parent[1])
            where = f"{column} IN (SELECT id FROM {parent_table} WHERE {parent_column} = :member_id)"
        else:
            where = f"{column} = :member_id"

        if self.kind is StepKind.NULLIFY:
            sql = f"UPDATE {table} SET {column} = NULL WHERE {where}"
        else:
            sql = f"DELETE FROM {table} WHERE {where}"
        return text(sql).bindparams(bindparam("member_id", type_=Uuid()))


def _owned(name: str, table: str, column: str, **kwargs) -> CleanupStep:
    return CleanupStep(name=name, table=table, column=column, kind=StepKind.DELETE, **kwargs)


def _attribution(name: str, table: str, column: str, **kwargs) -> CleanupStep:
    return CleanupStep(name=name, table=table, column=column, kind=StepKind.NULLIFY, **kwargs)


# Owned transactional rows first, then attribution columns, then the member's own roles.
CLEANUP_PLAN: tuple[CleanupStep, ...] = (
    _owned("votes", "votes", "member_id"),
    _owned("meeting_attendance", "meeting_attendance", "member_id"),
    _owned("discipline_records", "discipline_records", "member_id"),
    _owned("mpesa_transactions", "mpesa_transactions", "member_id"),
    _owned("mpesa_transactions_initiated", "mpesa_transactions", "initiated_by"),
    _owned("pesapal_transactions", "pesapal_transactions", "member_id"),
    _owned("payments", "payments", "member_id"),
    _owned("refund_requests", "refund_requests", "member_id"),
    _owned("mpesa_standing_orders", "mpesa_standing_orders", "member_id"),
    _owned("contribution_tracking", "contribution_tracking", "member_id"),
    _owned("contributions", "contributions", "member_id"),
    _owned("membership_fees", "membership_fees", "member_id"),
    _owned("welfare_transactions", "welfare_transactions", "member_id"),
    _owned("notification_preferences", "notification_preferences", "user_id"),
    _owned("notifications", "notifications", "user_id", optional=False),
    _owned("message_reactions_on_messages", "message_reactions", "message_id", parent=("messages", "sender_id")),
    _owned("message_reactions", "message_reactions", "user_id"),
    _owned("typing_indicators", "typing_indicators", "user_id"),
    _owned("messages", "messages", "sender_id"),
    _owned("private_messages", "private_messages", "sender_id"),
    _owned(
        "private_messages_in_conversations_one",
        "private_messages",
        "conversation_id",
        parent=("private_conversations", "participant_one"),
    ),
    _owned(
        "private_messages_in_conversations_two",
        "private_messages",
        "conversation_id",
        parent=("private_conversations", "participant_two"),
    ),
    _owned("private_conversations_one", "private_conversations", "participant_one"),
    _owned("private_conversations_two", "private_conversations", "participant_two"),
    _owned("user_status", "user_status", "user_id"),
    _owned("role_handovers_original", "role_handovers", "original_user_id"),
    _owned("role_handovers_acting", "role_handovers", "acting_user_id"),
    _attribution("welfare_cases_created_by", "welfare_cases", "created_by"),
    _attribution("welfare_cases_beneficiary", "welfare_cases", "beneficiary_id"),
    _attribution("welfare_transactions_recorded_by", "welfare_transactions", "recorded_by_id"),
    _attribution("announcements_created_by", "announcements", "created_by"),
    _attribution("meeting_minutes_approved_by", "meeting_minutes", "approved_by"),
    _attribution("meeting_attendance_marked_by", "meeting_attendance", "marked_by"),
    _attribution("discipline_records_resolved_by", "discipline_records", "resolved_by"),
    _attribution("mpesa_transactions_verified_by", "mpesa_transactions", "verified_by"),
    _attribution("voting_motions_tie_breaker", "voting_motions", "tie_breaker_by"),
    _attribution("user_roles_assigned_by", "user_roles", "assigned_by", optional=False),
    _attribution("admin_audit_log_actor", "admin_audit_log", "actor_id", optional=False),
    _owned("user_roles", "user_roles", "user_id", optional=False),
)


class _SchemaProbe:
    """Caches table/column lookups for one cleanup run."""

    def __init__(self, db: Session):
        self._inspector = inspect(db.get_bind())
        self._tables = set(self._inspector.get_table_names())
        self._columns: dict[str, set[str]] = {}

    def has(self, table: str, column: str) -> bool:
        if table not in self._tables:
            return False
        if table not in self._columns:
            self._columns[table] = {col["name"] for col in self._inspector.get_columns(table)}
        return column in self._columns[table]


def run_cleanup(
    db: Session,
    member_id: uuid.UUID,
    plan: tuple[CleanupStep, ...] = CLEANUP_PLAN,
) -> dict[str, int | None]:
    """
    Apply ``plan`` for ``member_id``.

    Returns a report mapping each step name to the rows it touched, or ``None``
    when the step was skipped because its relation is not installed.
    """
    probe = _SchemaProbe(db)
    quote = db.get_bind().dialect.identifier_preparer.quote
    report: dict[str, int | None] = {}

    for step in plan:
        missing = [f"{t}.{c}" for t, c in step.relations() if not probe.has(t, c)]
        if missing:
            if step.optional:
                logger.info("Cleanup step %s skipped; %s not present", step.name, ", ".join(missing))
                report[step.name] = None
                continue
            raise CleanupFailed(step.name, f"Cleanup step '{step.name}' failed: {', '.join(missing)} missing")

        try:
            result = db.execute(step.statement(quote), {"member_id": member_id})
            touched = result.rowcount
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Cleanup step %s failed for member %s", step.name, member_id, exc_info=True)
            raise CleanupFailed(step.name) from exc

        report[step.name] = touched

    logger.info(
        "Cleanup for member %s finished: %s rows touched, %s steps skipped",
        member_id,
        sum(count for count in report.values() if count),
        sum(1 for count in report.values() if count is None),
    )
    return report
