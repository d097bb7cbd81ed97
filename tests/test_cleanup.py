import uuid

import pytest
from sqlalchemy import Uuid, bindparam, text

from portal.core.errors import CleanupFailed
from portal.members.cleanup import CLEANUP_PLAN, CleanupStep, StepKind, run_cleanup


def _insert(db, sql, **values):
    stmt = text(sql).bindparams(*(bindparam(name, type_=Uuid()) for name in values))
    db.execute(stmt, values)
    db.commit()


def test_plan_removes_own_roles_last():
    assert CLEANUP_PLAN[-1].table == "user_roles"
    assert CLEANUP_PLAN[-1].kind is StepKind.DELETE
    required = {step.name for step in CLEANUP_PLAN if not step.optional}
    assert required == {"notifications", "user_roles_assigned_by", "admin_audit_log_actor", "user_roles"}


def test_plan_step_names_are_unique():
    names = [step.name for step in CLEANUP_PLAN]
    assert len(names) == len(set(names))


def test_full_plan_runs_with_only_the_modelled_tables(db):
    report = run_cleanup(db, uuid.uuid4())
    assert report["contributions"] is None
    assert report["notifications"] == 0
    assert report["user_roles"] == 0


def test_optional_step_on_missing_table_is_skipped(db):
    plan = (CleanupStep("ghost", "ghost_table", "member_id"),)
    assert run_cleanup(db, uuid.uuid4(), plan) == {"ghost": None}


def test_optional_step_on_missing_column_is_skipped(db):
    db.execute(text("CREATE TABLE votes (id INTEGER PRIMARY KEY, voter CHAR(32))"))
    db.commit()
    plan = (CleanupStep("votes", "votes", "member_id"),)
    assert run_cleanup(db, uuid.uuid4(), plan) == {"votes": None}


def test_required_step_on_missing_table_fails(db):
    plan = (
        CleanupStep("ghost", "ghost_table", "member_id"),
        CleanupStep("ledger", "ledger", "member_id", optional=False),
    )
    with pytest.raises(CleanupFailed) as excinfo:
        run_cleanup(db, uuid.uuid4(), plan)
    assert excinfo.value.step == "ledger"
    assert excinfo.value.details == {"step": "ledger"}
    assert "ledger.member_id" in excinfo.value.message


def test_store_error_names_the_failing_step(db):
    member_id = uuid.uuid4()
    db.execute(text("CREATE TABLE meetings (id INTEGER PRIMARY KEY, created_by CHAR(32) NOT NULL)"))
    db.commit()
    _insert(db, "INSERT INTO meetings (created_by) VALUES (:m)", m=member_id)

    plan = (CleanupStep("meetings_created_by", "meetings", "created_by", kind=StepKind.NULLIFY),)
    with pytest.raises(CleanupFailed) as excinfo:
        run_cleanup(db, member_id, plan)

    assert excinfo.value.step == "meetings_created_by"
    assert excinfo.value.status_code == 500
    # The session is usable again after the failure.
    assert db.execute(text("SELECT COUNT(*) FROM meetings")).scalar_one() == 1


def test_delete_and_nullify_touch_only_the_member(db):
    member_id, other_id = uuid.uuid4(), uuid.uuid4()
    db.execute(text("CREATE TABLE payments (id INTEGER PRIMARY KEY, member_id CHAR(32))"))
    db.execute(text("CREATE TABLE announcements (id INTEGER PRIMARY KEY, created_by CHAR(32))"))
    db.commit()
    for owner in (member_id, member_id, other_id):
        _insert(db, "INSERT INTO payments (member_id) VALUES (:m)", m=owner)
    _insert(db, "INSERT INTO announcements (created_by) VALUES (:m)", m=member_id)

    plan = (
        CleanupStep("payments", "payments", "member_id"),
        CleanupStep("announcements_created_by", "announcements", "created_by", kind=StepKind.NULLIFY),
    )
    report = run_cleanup(db, member_id, plan)

    assert report == {"payments": 2, "announcements_created_by": 1}
    assert db.execute(text("SELECT COUNT(*) FROM payments")).scalar_one() == 1
    assert db.execute(text("SELECT COUNT(*) FROM announcements WHERE created_by IS NULL")).scalar_one() == 1


def test_rerunning_the_plan_is_harmless(db):
    member_id = uuid.uuid4()
    db.execute(text("CREATE TABLE payments (id INTEGER PRIMARY KEY, member_id CHAR(32))"))
    db.commit()
    _insert(db, "INSERT INTO payments (member_id) VALUES (:m)", m=member_id)
    plan = (CleanupStep("payments", "payments", "member_id"),)

    assert run_cleanup(db, member_id, plan) == {"payments": 1}
    assert run_cleanup(db, member_id, plan) == {"payments": 0}


def test_parent_scoped_step_requires_parent_relation(db):
    db.execute(text("CREATE TABLE private_messages (id INTEGER PRIMARY KEY, conversation_id INTEGER)"))
    db.commit()
    plan = (
        CleanupStep(
            "private_messages_in_conversations",
            "private_messages",
            "conversation_id",
            parent=("private_conversations", "participant_one"),
        ),
    )
    assert run_cleanup(db, uuid.uuid4(), plan) == {"private_messages_in_conversations": None}
