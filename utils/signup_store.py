"""
Signup store - persistence contract for early access signups
"""
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, undefer

from core.config import logger
from core.exceptions import StorageUnavailable
from models.early_access import EarlyAccessSignup
from utils.hashing import digest_with_salt
from utils.validation import normalize_email


@dataclass(frozen=True)
class SubmitResult:
    created: bool


def mask_email(email: str) -> str:
    return f"{(email or '')[:3]}***"


class SignupStore:
    """
    Insert-or-noop storage for signups, keyed by normalized email.

    The unique constraint on ``email`` is the authoritative duplicate guard;
    the lookup in submit() only saves the hashing cost for known emails.
    """

    def __init__(self, db: Session):
        self.db = db

    def _find(self, email: str):
        return self.db.query(EarlyAccessSignup).filter(EarlyAccessSignup.email == email).first()

    def submit(
        self,
        email: str,
        ip_hash: str,
        user_agent: str | None = None,
        source: str | None = None,
        campaign: str | None = None,
    ) -> SubmitResult:
        email = normalize_email(email)
        try:
            if self._find(email) is not None:
                return SubmitResult(created=False)
        except SQLAlchemyError as ex:
            self.db.rollback()
            raise StorageUnavailable(f"signup lookup failed: {ex}") from ex

        # Digest before the insert so a record never lands without one
        email_hash = digest_with_salt(email)

        rec = EarlyAccessSignup(
            email=email,
            email_hash=email_hash,
            ip_hash=ip_hash,
            user_agent=user_agent,
            source=source,
            campaign=campaign,
        )
        try:
            self.db.add(rec)
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            self.db.rollback()
            logger.info(f"[signup_store] concurrent duplicate for {mask_email(email)}")
            return SubmitResult(created=False)
        except SQLAlchemyError as ex:
            self.db.rollback()
            raise StorageUnavailable(f"signup insert failed: {ex}") from ex
        return SubmitResult(created=True)

    def get(self, email: str):
        return self._find(normalize_email(email))

    def list_recent(self, limit: int = 50) -> list[dict]:
        rows = (
            self.db.query(EarlyAccessSignup)
            .order_by(EarlyAccessSignup.signup_date.desc(), EarlyAccessSignup.id.desc())
            .limit(limit)
            .all()
        )
        return [r.to_dict() for r in rows]

    def count(self) -> int:
        return self.db.query(func.count(EarlyAccessSignup.id)).scalar() or 0

    def verify_email_integrity(self, email: str) -> bool:
        email = normalize_email(email)
        rec = (
            self.db.query(EarlyAccessSignup)
            .options(undefer(EarlyAccessSignup.email_hash))
            .filter(EarlyAccessSignup.email == email)
            .first()
        )
        return bool(rec and rec.verify_email_integrity(email))
