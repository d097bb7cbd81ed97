"""Module: seed_data."""

from faker import Faker
import csv
import random
import string
from pathlib import Path
from datetime import datetime, UTC
from sqlalchemy import delete, select

from portal.core.security import redacted_phone
from portal.db.models.admin_audit_log import AdminAuditLog
from portal.db.models.notification import Notification
from portal.db.models.profile import MEMBER_STATUSES, Profile
from portal.db.models.user_role import UserRole
from portal.members.roles import OFFICIAL_ROLES, AppRole

fake = Faker()

KE_LOCATIONS = ["Nairobi", "Kiambu", "Nakuru", "Machakos", "Kisumu", "Mombasa", "Nyeri", "Murang'a"]
OCCUPATIONS = ["Tailor", "Farmer", "Nurse", "Trader", "Engineer", "Driver", "Accountant", "Student"]


# Shared helpers used by multiple seed builders.
def generate_ke_mobile(used: set[str]) -> str:
    # Kenyan mobile in international form: +2547 + 8 digits
    while True:
        phone = "+2547" + "".join(random.choice(string.digits) for _ in range(8))
        if phone not in used:
            used.add(phone)
            return phone


def generate_id_number() -> str:
    return "".join(random.choice(string.digits) for _ in range(8))


def membership_number(seq: int) -> str:
    return f"MBR-{seq:04d}"


def reset_db(session) -> None:
    # Children first so the profiles FK never blocks.
    for model in (UserRole, Notification, AdminAuditLog, Profile):
        session.execute(delete(model))
    session.commit()


def seed_members(session, n: int = 60) -> list[Profile]:
    # Mix of statuses; only active members get a membership number.
    used_phones: set[str] = set()
    profiles: list[Profile] = []
    seq = 1
    for _ in range(n):
        status = random.choices(
            population=MEMBER_STATUSES,
            weights=[0.2, 0.65, 0.1, 0.05],
            k=1,
        )[0]
        is_active = status == "active"
        profile = Profile(
            full_name=fake.name(),
            email=fake.unique.email(),
            phone=generate_ke_mobile(used_phones),
            id_number=generate_id_number(),
            location=random.choice(KE_LOCATIONS),
            occupation=random.choice(OCCUPATIONS),
            status=status,
            registration_fee_paid=is_active or random.random() < 0.3,
            membership_number=membership_number(seq) if is_active else None,
        )
        if is_active:
            seq += 1
        profiles.append(profile)
    session.add_all(profiles)
    session.commit()

    session.add_all(UserRole(user_id=p.id, role=AppRole.MEMBER.value) for p in profiles)
    session.commit()
    return profiles


def seed_officials(session, profiles: list[Profile]) -> dict[str, Profile]:
    # One active, fully registered member per official role; admin first.
    eligible = [p for p in profiles if p.status == "active" and p.registration_fee_paid]
    roles = [AppRole.ADMIN] + sorted((r for r in OFFICIAL_ROLES if r is not AppRole.ADMIN), key=lambda r: r.value)
    officials: dict[str, Profile] = {}
    for role, profile in zip(roles, eligible):
        session.add(UserRole(user_id=profile.id, role=role.value))
        officials[role.value] = profile
    session.commit()
    return officials


def seed_redacted_member(session) -> Profile:
    # A previously rejected applicant, already redacted, for UI/testing of soft-deleted rows.
    profile = Profile(
        full_name="Redacted Member",
        phone="pending",
        id_number="REDACTED",
        location="REDACTED",
        occupation="REDACTED",
        status="suspended",
        soft_deleted=True,
        deleted_at=datetime.now(UTC),
    )
    session.add(profile)
    session.flush()
    profile.phone = redacted_phone(str(profile.id))
    session.commit()
    return profile


def export_members(session) -> Path:
    out_path = Path(__file__).resolve().parent / "seeded_members.csv"
    rows = session.execute(
        select(Profile.id, Profile.membership_number, Profile.full_name, Profile.status)
    ).all()
    roles: dict = {}
    for user_id, role in session.execute(select(UserRole.user_id, UserRole.role)).all():
        roles.setdefault(user_id, []).append(role)

    with out_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["profile_id", "membership_number", "full_name", "status", "roles"])
        for profile_id, number, name, status in rows:
            writer.writerow([str(profile_id), number or "", name, status, "|".join(sorted(roles.get(profile_id, [])))])
    return out_path


if __name__ == "__main__":
    from portal.db.init_db import init_db
    from portal.db.session import SessionLocal

    # Full reseed pipeline: python -m portal.scripts.seed_data
    init_db()
    session = SessionLocal()
    try:
        print("Resetting tables...")
        reset_db(session)

        print("Seeding members (60)...")
        members = seed_members(session, 60)

        print("Assigning official roles...")
        officials = seed_officials(session, members)

        print("Seeding a redacted applicant...")
        seed_redacted_member(session)

        out_path = export_members(session)
        print(f"Done. members={len(members) + 1}, officials={len(officials)}")
        print("Create matching auth users with the exported profile ids before signing in.")
        print(f"Member export: {out_path}")
    finally:
        session.close()
