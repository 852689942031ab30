"""Tests for utils.signup_store and the EarlyAccessSignup model."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import undefer

from core.database import SessionLocal
from core.exceptions import StorageUnavailable
from models.early_access import EarlyAccessSignup
from utils.hashing import hash_ip, verify_ip
from utils.signup_store import SignupStore, mask_email


@pytest.fixture
def store(db_session):
    return SignupStore(db_session)


@pytest.fixture
def ip_hash():
    return hash_ip("203.0.113.10")


def test_first_submit_creates_second_is_noop(store, ip_hash):
    assert store.submit("jane@example.com", ip_hash).created is True
    assert store.submit("jane@example.com", ip_hash).created is False
    assert store.count() == 1


def test_case_and_whitespace_variants_share_one_record(store, ip_hash):
    assert store.submit("Foo@Bar.com", ip_hash).created is True
    assert store.submit(" foo@bar.com ", ip_hash).created is False
    assert store.count() == 1
    assert store.get("FOO@bar.COM").email == "foo@bar.com"


def test_defaults_and_attribution(store, ip_hash):
    store.submit("jane@example.com", ip_hash, user_agent="Mozilla/5.0", source="https://ref.example/", campaign="launch")
    rec = store.get("jane@example.com")
    assert rec.verified is False
    assert rec.signup_date is not None
    assert rec.attribution == {"source": "https://ref.example/", "campaign": "launch"}


def test_duplicate_does_not_touch_existing_record(store, ip_hash):
    store.submit("jane@example.com", ip_hash, source="first", campaign="a")
    before = store.get("jane@example.com").signup_date
    store.submit("jane@example.com", hash_ip("198.51.100.1"), source="second", campaign="b")

    fresh = SignupStore(SessionLocal())
    try:
        rec = fresh.db.query(EarlyAccessSignup).options(undefer(EarlyAccessSignup.ip_hash)).one()
        assert rec.source == "first"
        assert rec.campaign == "a"
        assert rec.signup_date == before
        assert verify_ip("203.0.113.10", rec.ip_hash)
    finally:
        fresh.db.close()


def test_sensitive_columns_are_not_loaded_by_ordinary_reads(store, ip_hash):
    store.submit("jane@example.com", ip_hash, user_agent="Mozilla/5.0")
    db = SessionLocal()
    try:
        rec = db.query(EarlyAccessSignup).filter(EarlyAccessSignup.email == "jane@example.com").one()
        unloaded = inspect(rec).unloaded
        assert {"email_hash", "ip_hash", "user_agent"} <= unloaded
        data = rec.to_dict()
        assert set(data) == {"email", "signupDate", "verified", "metadata"}
        assert "hash" not in str(data).lower()
    finally:
        db.close()


def test_list_recent_is_most_recent_first_and_hides_digests(store, ip_hash):
    for email in ["one@example.com", "two@example.com", "three@example.com"]:
        store.submit(email, ip_hash)
    rows = store.list_recent()
    assert [r["email"] for r in rows] == ["three@example.com", "two@example.com", "one@example.com"]
    assert all("email_hash" not in r and "ip_hash" not in r for r in rows)
    assert len(store.list_recent(limit=2)) == 2


def test_email_integrity_verification(store, ip_hash):
    store.submit("jane@example.com", ip_hash)
    assert store.verify_email_integrity("jane@example.com") is True
    assert store.verify_email_integrity("  JANE@example.com") is True
    assert store.verify_email_integrity("john@example.com") is False

    rec = store.db.query(EarlyAccessSignup).options(undefer(EarlyAccessSignup.email_hash)).one()
    assert rec.email_hash != "jane@example.com"
    assert rec.verify_email_integrity("jane@example.com") is True
    assert rec.verify_email_integrity("jane@example.org") is False


def test_constraint_violation_is_treated_as_existing(store, ip_hash, monkeypatch):
    store.submit("jane@example.com", ip_hash)
    # Simulate losing the race: the lookup misses, the insert hits the unique index
    monkeypatch.setattr(store, "_find", lambda email: None)
    assert store.submit("jane@example.com", ip_hash).created is False
    monkeypatch.undo()
    assert store.count() == 1


def test_storage_failure_on_insert_raises_storage_unavailable(store, ip_hash, monkeypatch):
    def down():
        raise OperationalError("INSERT", {}, Exception("connection refused"))

    monkeypatch.setattr(store.db, "commit", down)
    with pytest.raises(StorageUnavailable) as exc_info:
        store.submit("jane@example.com", ip_hash)
    assert "connection refused" in exc_info.value.detail
    assert exc_info.value.to_dict() == {"success": False, "message": "An error occurred. Please try again."}


def test_storage_failure_on_lookup_raises_storage_unavailable(store, ip_hash, monkeypatch):
    def down(email):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(store, "_find", down)
    with pytest.raises(StorageUnavailable):
        store.submit("jane@example.com", ip_hash)


def test_signup_date_is_immutable(store, ip_hash):
    store.submit("jane@example.com", ip_hash)
    rec = store.get("jane@example.com")
    with pytest.raises(ValueError):
        rec.signup_date = datetime(2000, 1, 1, tzinfo=timezone.utc)


def test_digests_are_write_once(store, ip_hash):
    store.submit("jane@example.com", ip_hash)
    rec = store.get("jane@example.com")
    with pytest.raises(ValueError):
        rec.ip_hash = hash_ip("198.51.100.1")


def test_mask_email():
    assert mask_email("jane@example.com") == "jan***"
