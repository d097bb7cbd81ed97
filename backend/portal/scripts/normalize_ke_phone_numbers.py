"""Module: normalize_ke_phone_numbers."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.core.security import REDACTED_PHONE_PREFIX
from portal.db.models.profile import Profile
from portal.members.phone import normalize_kenyan_phone


def normalize_profile_phones(session: Session) -> tuple[int, int]:
    """
    Rewrite profile phones to +254 form in place.

    Redacted placeholders and numbers that do not parse are left untouched.
    Returns (updated, skipped).
    """
    updated = skipped = 0
    for profile in session.execute(select(Profile)).scalars():
        if profile.phone.startswith(REDACTED_PHONE_PREFIX):
            skipped += 1
            continue
        normalized = normalize_kenyan_phone(profile.phone)
        if normalized is None:
            skipped += 1
            continue
        if normalized != profile.phone:
            profile.phone = normalized
            updated += 1
    session.commit()
    return updated, skipped


if __name__ == "__main__":
    from portal.db.session import SessionLocal

    # One-off maintenance script to normalize all profile phone numbers in-place.
    session = SessionLocal()
    try:
        updated, skipped = normalize_profile_phones(session)
        print(f"Normalized {updated} profile phone numbers to +254 format ({skipped} skipped).")
    finally:
        session.close()
