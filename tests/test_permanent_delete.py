import uuid

import pytest
from sqlalchemy import Uuid, bindparam, text

from conftest import ADMIN_OPS_URL, audit_count, reload, roles_of
from portal.core.errors import CleanupFailed
from portal.members import lifecycle


def _count(db, table, column, member_id) -> int:
    stmt = text(f"SELECT COUNT(*) FROM {table} WHERE {column} = :member_id").bindparams(
        bindparam("member_id", type_=Uuid())
    )
    return db.execute(stmt, {"member_id": member_id}).scalar_one()


def _insert(db, sql, **values):
    stmt = text(sql).bindparams(*(bindparam(name, type_=Uuid()) for name in values))
    db.execute(stmt, values)


@pytest.fixture
def portal_tables(db):
    """A slice of the wider portal schema that references members."""
    for ddl in (
        "CREATE TABLE contributions (id INTEGER PRIMARY KEY, member_id CHAR(32) NOT NULL, amount NUMERIC)",
        "CREATE TABLE welfare_cases (id INTEGER PRIMARY KEY, title TEXT, created_by CHAR(32), beneficiary_id CHAR(32))",
        "CREATE TABLE messages (id INTEGER PRIMARY KEY, sender_id CHAR(32) NOT NULL, body TEXT)",
        "CREATE TABLE message_reactions (id INTEGER PRIMARY KEY, message_id INTEGER, user_id CHAR(32), emoji TEXT)",
    ):
        db.execute(text(ddl))
    db.commit()


def _delete_body(member, **extra):
    return {
        "action": "delete_member",
        "member_id": str(member.id),
        "confirmation": f"DELETE {member.membership_number}",
        **extra,
    }


def test_confirmation_mismatch_reports_expected_phrase(client, db, auth, admin_headers, make_member):
    target = make_member("member", membership_number="MBR-0042")

    r = client.post(ADMIN_OPS_URL, json=_delete_body(target, confirmation="DELETE MBR-0043"), headers=admin_headers)

    assert r.status_code == 400
    assert r.json() == {"error": "Confirmation text mismatch", "details": {"expected": "DELETE MBR-0042"}}
    assert reload(db, target.id) is not None
    assert auth.deleted == []


def test_missing_confirmation_is_a_mismatch(client, admin_headers, make_member):
    target = make_member("member")
    body = _delete_body(target)
    del body["confirmation"]
    r = client.post(ADMIN_OPS_URL, json=body, headers=admin_headers)
    assert r.status_code == 400


def test_confirmation_falls_back_to_member_id(client, db, admin_headers, make_member):
    target = make_member("member", membership_number=None)
    target_id = target.id
    r = client.post(
        ADMIN_OPS_URL,
        json=_delete_body(target, confirmation=f"delete {target_id}"),
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert reload(db, target_id) is None


@pytest.mark.parametrize("confirmation", ["   delete mbr-9\n", "DELETE MBR-9 ", " DELETE MBR-9"])
def test_padded_confirmation_is_a_mismatch(client, db, auth, admin_headers, make_member, confirmation):
    target = make_member("member", membership_number="MBR-9")

    r = client.post(ADMIN_OPS_URL, json=_delete_body(target, confirmation=confirmation), headers=admin_headers)

    assert r.status_code == 400
    assert r.json()["details"] == {"expected": "DELETE MBR-9"}
    assert reload(db, target.id) is not None
    assert auth.deleted == []


def test_official_role_requires_force(client, db, auth, admin_headers, make_member):
    treasurer = make_member("member", "treasurer")

    r = client.post(ADMIN_OPS_URL, json=_delete_body(treasurer), headers=admin_headers)

    assert r.status_code == 409
    assert r.json()["details"] == {"roles": ["treasurer"]}
    assert reload(db, treasurer.id) is not None
    assert roles_of(db, treasurer.id) == {"member", "treasurer"}
    assert auth.deleted == []


def test_forced_delete_removes_every_reference(client, db, auth, admin, admin_headers, make_member, portal_tables):
    treasurer = make_member("member", "treasurer", full_name="Otieno Ouma")
    other = make_member("member")
    treasurer_id, other_id = treasurer.id, other.id
    _insert(db, "INSERT INTO contributions (member_id, amount) VALUES (:m, 500)", m=treasurer_id)
    _insert(db, "INSERT INTO contributions (member_id, amount) VALUES (:m, 300)", m=other_id)
    _insert(db, "INSERT INTO welfare_cases (title, created_by) VALUES ('Funeral', :m)", m=treasurer_id)
    _insert(db, "INSERT INTO messages (id, sender_id, body) VALUES (1, :m, 'hello')", m=treasurer_id)
    _insert(db, "INSERT INTO message_reactions (message_id, user_id, emoji) VALUES (1, :m, '+1')", m=other_id)
    db.commit()

    r = client.post(ADMIN_OPS_URL, json=_delete_body(treasurer, force=True), headers=admin_headers)

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["deleted"] == str(treasurer_id)
    assert body["profile"]["full_name"] == "Otieno Ouma"

    assert reload(db, treasurer_id) is None
    assert roles_of(db, treasurer_id) == set()
    assert _count(db, "contributions", "member_id", treasurer_id) == 0
    assert _count(db, "contributions", "member_id", other_id) == 1
    assert _count(db, "messages", "sender_id", treasurer_id) == 0
    assert _count(db, "notifications", "user_id", treasurer_id) == 0
    assert db.execute(text("SELECT COUNT(*) FROM message_reactions")).scalar_one() == 0
    # Attribution rows survive without the reference.
    assert db.execute(text("SELECT COUNT(*) FROM welfare_cases WHERE created_by IS NULL")).scalar_one() == 1

    assert auth.deleted == [(str(treasurer_id), False)]
    assert audit_count(db, "member_permanently_deleted") == 1


def test_deleted_member_attributions_are_cleared(client, db, admin_headers, make_member, headers_for):
    chair = make_member("member", "chairperson")
    chair_id = chair.id
    recruit = make_member("member")
    # The chairperson's own audit trail and role grants point at them.
    granted = client.post(
        ADMIN_OPS_URL,
        json={"action": "assign_official_role", "user_id": str(recruit.id), "role": "patron"},
        headers=headers_for(chair),
    )
    assert granted.status_code == 200

    r = client.post(ADMIN_OPS_URL, json=_delete_body(chair, force=True), headers=admin_headers)

    assert r.status_code == 200
    assert _count(db, "admin_audit_log", "actor_id", chair_id) == 0
    assert _count(db, "user_roles", "assigned_by", chair_id) == 0
    assert roles_of(db, recruit.id) == {"member", "patron"}


def test_admin_cannot_delete_themself(client, db, admin, admin_headers):
    r = client.post(ADMIN_OPS_URL, json=_delete_body(admin), headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "You cannot delete your own account"
    assert reload(db, admin.id) is not None


def test_chairperson_cannot_delete_members(client, db, auth, make_member, headers_for):
    chair = make_member("member", "chairperson")
    target = make_member("member")

    r = client.post(ADMIN_OPS_URL, json=_delete_body(target), headers=headers_for(chair))

    assert r.status_code == 403
    assert r.json()["details"]["required"] == ["admin"]
    assert reload(db, target.id) is not None
    assert auth.deleted == []
    assert audit_count(db) == 0


def test_permanent_suspension_runs_the_delete_flow(client, db, auth, admin_headers, make_member):
    target = make_member("member")
    target_id = target.id
    r = client.post(
        ADMIN_OPS_URL,
        json={
            "action": "suspend_member",
            "member_id": str(target_id),
            "mode": "permanent",
            "confirmation": f"DELETE {target.membership_number}",
        },
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["deleted"] == str(target_id)
    assert reload(db, target_id) is None
    assert roles_of(db, target_id) == set()
    assert auth.deleted == [(str(target_id), False)]


def test_failed_cleanup_stops_before_auth_deletion(client, db, auth, admin_headers, make_member, monkeypatch):
    target = make_member("member")

    def failing_cleanup(db, member_id, plan=None):
        raise CleanupFailed("contributions")

    monkeypatch.setattr(lifecycle, "run_cleanup", failing_cleanup)

    r = client.post(ADMIN_OPS_URL, json=_delete_body(target), headers=admin_headers)

    assert r.status_code == 500
    assert r.json() == {"error": "Cleanup step 'contributions' failed", "details": {"step": "contributions"}}
    assert reload(db, target.id) is not None
    assert auth.deleted == []
    assert audit_count(db, "member_permanently_deleted") == 0


def test_unknown_member_is_not_found(client, admin_headers):
    r = client.post(
        ADMIN_OPS_URL,
        json={"action": "delete_member", "member_id": str(uuid.uuid4()), "confirmation": "DELETE X"},
        headers=admin_headers,
    )
    assert r.status_code == 404
