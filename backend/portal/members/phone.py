"""Module: phone."""

import re

# Safaricom/Airtel style mobiles: 07XXXXXXXX / 01XXXXXXXX locally, 2547... / 2541... internationally.
KE_MOBILE_LOCAL = re.compile(r"^0([17]\d{8})$")
KE_MOBILE_INTL = re.compile(r"^254([17]\d{8})$")


def normalize_kenyan_phone(phone: str | None) -> str | None:
    """Return ``+254XXXXXXXXX`` for a recognisable Kenyan mobile number, else ``None``."""
    if not phone:
        return None

    digits = re.sub(r"\D", "", phone.strip())
    if not digits:
        return None

    match = KE_MOBILE_LOCAL.match(digits) or KE_MOBILE_INTL.match(digits)
    if match:
        return f"+254{match.group(1)}"
    return None


def is_valid_kenyan_phone(phone: str | None) -> bool:
    return normalize_kenyan_phone(phone) is not None
