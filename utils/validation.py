"""
Email validation for signup submissions
Rejects malformed and placeholder addresses before they reach storage
"""
import re

from core.exceptions import InvalidInput

MAX_EMAIL_LENGTH = 254  # RFC 5321

# RFC 5322 style local part, dot-separated domain labels of at most 63 chars
EMAIL_REGEX = re.compile(
    r"[a-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
    r"(?:\.[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?)*"
)

SUSPICIOUS_PATTERNS = (
    re.compile(r"(.)\1{4,}"),  # 5+ repeated characters
    re.compile(r"test@test"),  # placeholder addresses
    re.compile(r"^[^@]+@[^.]+$"),  # missing TLD
)


def normalize_email(raw: str) -> str:
    return (raw or "").strip().lower()


def is_suspicious(email: str) -> bool:
    return any(p.search(email) for p in SUSPICIOUS_PATTERNS)


def validate_email(raw) -> str:
    """
    Normalize and validate an email address.
    Returns the normalized email, raises InvalidInput otherwise.

    Every rejection carries the same message so the endpoint can't be used to
    probe which rule an address trips.
    """
    if not isinstance(raw, str):
        raise InvalidInput("email is not a string")

    email = normalize_email(raw)
    if not email:
        raise InvalidInput("email is empty")
    if len(email) > MAX_EMAIL_LENGTH:
        raise InvalidInput("email too long")
    if not EMAIL_REGEX.fullmatch(email):
        raise InvalidInput("email does not match grammar")
    if is_suspicious(email):
        raise InvalidInput("email matches a suspicious pattern")
    return email

