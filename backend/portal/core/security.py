"""Module: security."""

import hmac

from portal.core.errors import Unauthorized

# Prefix for phone placeholders written over redacted profiles.
REDACTED_PHONE_PREFIX = "REDACTED-"
CONFIRMATION_PREFIX = "DELETE"


def get_bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise Unauthorized("Missing Authorization header")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized("Invalid Authorization header")

    token = parts[1].strip()
    if not token:
        raise Unauthorized("Invalid Authorization header")
    return token


def expected_confirmation(member_id: str, membership_number: str | None) -> str:
    """
    Build the phrase an admin must type before a permanent delete.

    Format:
      DELETE <MEMBERSHIP_NUMBER or MEMBER_ID>, upper-cased
    """
    return f"{CONFIRMATION_PREFIX} {membership_number or member_id}".upper()


def confirmation_matches(supplied: str | None, expected: str) -> bool:
    if not supplied:
        return False
    return hmac.compare_digest(
        supplied.upper().encode("utf-8"),
        expected.encode("utf-8"),
    )


def redacted_phone(member_id: str) -> str:
    # Derived from the id so the unique phone constraint still holds after redaction.
    return f"{REDACTED_PHONE_PREFIX}{member_id[:8]}"
