"""
One-way digests for privacy-sensitive values (client IPs, emails).

bcrypt only consumes the first 72 bytes of its input, so values are reduced
with SHA-256 first and the base64 form is what bcrypt actually hashes.
"""
import base64
import hashlib

import bcrypt

from core.config import BCRYPT_ROUNDS, IP_SALT, logger
from core.exceptions import HashingError


def _prehash(value: str, salt: str) -> bytes:
    raw = ((value or "") + (salt or "")).encode("utf-8")
    return base64.b64encode(hashlib.sha256(raw).digest())


def digest_with_salt(value: str, salt: str = "", rounds: int | None = None) -> str:
    """
    Slow salted digest of ``value``.

    ``salt`` is an application secret mixed into the input; bcrypt adds its own
    random per-digest salt on top. Raises HashingError instead of returning an
    empty digest so callers never persist a record without one.
    """
    if value is None:
        raise HashingError("cannot digest an empty value")
    try:
        salt_bytes = bcrypt.gensalt(rounds=rounds or BCRYPT_ROUNDS)
        return bcrypt.hashpw(_prehash(value, salt), salt_bytes).decode("utf-8")
    except Exception as ex:
        raise HashingError(f"bcrypt digest failed: {ex}") from ex


def verify_digest(candidate: str, digest: str, salt: str = "") -> bool:
    """True iff ``digest`` was produced from ``candidate`` + ``salt``."""
    if not digest or candidate is None:
        return False
    try:
        return bcrypt.checkpw(_prehash(candidate, salt), digest.encode("utf-8"))
    except ValueError:
        # Not a bcrypt digest
        logger.warning("[hashing] verify_digest called with a malformed digest")
        return False


def hash_ip(ip: str) -> str:
    return digest_with_salt(ip, IP_SALT)


def verify_ip(ip: str, digest: str) -> bool:
    return verify_digest(ip, digest, IP_SALT)
