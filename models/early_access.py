"""
Early access signup model
Privacy digests and the raw user agent are deferred columns: they are not
loaded by ordinary queries and never appear in to_dict()
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index
from sqlalchemy.orm import deferred, validates
from sqlalchemy.sql import func

from core.database import Base
from utils.hashing import verify_digest


def _utcnow():
    return datetime.now(timezone.utc)


class EarlyAccessSignup(Base):
    __tablename__ = "early_access_signups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(254), nullable=False, unique=True, index=True)  # normalized, RFC 5321 max

    # Write-once digests, excluded from default loads
    email_hash = deferred(Column(String(60), nullable=False))
    ip_hash = deferred(Column(String(60), nullable=False))
    user_agent = deferred(Column(String(512), nullable=True))

    signup_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    verified = Column(Boolean, nullable=False, default=False)

    # Attribution metadata
    source = Column(String(2048), nullable=True)  # referrer, "direct" when absent
    campaign = Column(String(255), nullable=True)  # utm_campaign

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_early_access_signups_signup_date", signup_date.desc()),
    )

    @validates("signup_date", "email_hash", "ip_hash")
    def _write_once(self, key, value):
        current = getattr(self, key, None)
        if current is not None and current != value:
            raise ValueError(f"{key} is immutable once set")
        return value

    @property
    def attribution(self) -> dict:
        return {"source": self.source, "campaign": self.campaign}

    def verify_email_integrity(self, email: str) -> bool:
        """Check a plaintext email against the stored digest (verification only, never lookup)."""
        if not self.email_hash:
            return False
        return verify_digest(email, self.email_hash)

    def to_dict(self):
        return {
            "email": self.email,
            "signupDate": self.signup_date.isoformat() if self.signup_date else None,
            "verified": bool(self.verified),
            "metadata": self.attribution,
        }
