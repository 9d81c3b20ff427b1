"""
tests/test_auth_service.py -- Unit tests for AuthService, UserStore and auth.tokens.

Covers:
  - register stores a bcrypt hash, never the plaintext
  - duplicate email -> DuplicateUser, existing hash untouched
  - missing fields -> ValidationError on register, InvalidCredentials on login
  - login returns a JWT whose subject is the email
  - wrong password and unknown email fail identically
  - sqlalchemy failures surface as StorageError
"""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import create_access_token, decode_access_token, hash_password, verify_password
from core.errors import DuplicateUser, InvalidCredentials, StorageError, ValidationError


@pytest.fixture()
def store():
    s = UserStore(db_url=f"sqlite:///file:users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield s
    s.close()


@pytest.fixture()
def service(store):
    return AuthService(store)


# ---------------------------------------------------------------------------
# register
# ---------------------------------------------------------------------------


def test_register_stores_hash_not_plaintext(service, store):
    assert service.register("nurse@example.com", "s3cret-pass") == "User registered successfully"
    user = store.get_by_email("nurse@example.com")
    assert user is not None
    assert user.hashed_password != "s3cret-pass"
    assert user.hashed_password.startswith("$2")
    assert verify_password("s3cret-pass", user.hashed_password)
    assert store.count_users() == 1


def test_register_duplicate_raises_and_keeps_original_hash(service, store):
    service.register("dup@example.com", "first-password")
    original = store.get_by_email("dup@example.com").hashed_password
    with pytest.raises(DuplicateUser):
        service.register("dup@example.com", "second-password")
    assert store.get_by_email("dup@example.com").hashed_password == original
    assert store.count_users() == 1


@pytest.mark.parametrize("email,password,missing", [("", "pw", ["email"]), ("a@example.com", None, ["password"])])
def test_register_missing_fields_raises_validation_error(service, store, email, password, missing):
    with pytest.raises(ValidationError) as exc_info:
        service.register(email, password)
    assert exc_info.value.fields == missing
    assert store.count_users() == 0


def test_register_integrity_race_maps_to_duplicate():
    store = MagicMock()
    store.get_by_email.return_value = None
    store.create_user.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
    with pytest.raises(DuplicateUser):
        AuthService(store).register("race@example.com", "pw")


def test_register_storage_failure_raises_storage_error():
    store = MagicMock()
    store.get_by_email.side_effect = OperationalError("SELECT", {}, Exception("boom"))
    with pytest.raises(StorageError) as exc_info:
        AuthService(store).register("x@example.com", "pw")
    assert exc_info.value.message == "Failed to register user."


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


def test_login_returns_token_for_email(service):
    service.register("doc@example.com", "correct-horse")
    token = service.login("doc@example.com", "correct-horse")
    payload = decode_access_token(token)
    assert payload is not None
    assert payload["sub"] == "doc@example.com"
    assert "exp" in payload


def test_wrong_password_and_unknown_email_fail_the_same(service):
    service.register("doc@example.com", "correct-horse")
    with pytest.raises(InvalidCredentials) as wrong:
        service.login("doc@example.com", "battery-staple")
    with pytest.raises(InvalidCredentials) as unknown:
        service.login("ghost@example.com", "correct-horse")
    assert wrong.value.message == unknown.value.message


@pytest.mark.parametrize("email,password", [("", "pw"), ("doc@example.com", ""), (None, None)])
def test_login_missing_fields_is_invalid_credentials(service, email, password):
    with pytest.raises(InvalidCredentials):
        service.login(email, password)


def test_login_storage_failure_raises_storage_error():
    store = MagicMock()
    store.get_by_email.side_effect = OperationalError("SELECT", {}, Exception("boom"))
    with pytest.raises(StorageError) as exc_info:
        AuthService(store).login("x@example.com", "pw")
    assert exc_info.value.message == "Failed to login."


# ---------------------------------------------------------------------------
# tokens
# ---------------------------------------------------------------------------


def test_decode_rejects_tampered_token():
    token = create_access_token("a@example.com", expire_seconds=60)
    assert decode_access_token(token + "x") is None
    assert decode_access_token("not-a-jwt") is None


def test_decode_rejects_expired_token(monkeypatch):
    import auth.tokens as tokens

    monkeypatch.setattr(tokens._settings, "token_expire_seconds", -10)
    # expire_seconds=0 falls back to the (now negative) configured lifetime.
    token = tokens.create_access_token("a@example.com")
    assert tokens.decode_access_token(token) is None


def test_verify_password_handles_malformed_hash():
    assert verify_password("pw", "not-a-bcrypt-hash") is False


def test_long_passwords_hash_without_error():
    long_pw = "p" * 100
    hashed = hash_password(long_pw)
    assert verify_password(long_pw, hashed)
