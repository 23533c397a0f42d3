from datetime import datetime, timedelta, timezone

import jwt
import pytest

from lms_admin.core.auth import AuthService
from lms_admin.core.errors import AuthenticationError, AuthorizationError


@pytest.fixture
def auth():
    return AuthService(secret="unit-secret")


def test_hash_and_verify_password(auth):
    hashed = auth.hash_password("correct horse")
    assert hashed.startswith("$2")
    assert auth.verify_password("correct horse", hashed)
    assert not auth.verify_password("battery staple", hashed)


def test_verify_password_handles_missing_values(auth):
    assert not auth.verify_password("x", None)
    assert not auth.verify_password("", auth.hash_password("x"))


def test_issue_token_embeds_id_role_and_thirty_day_expiry(auth):
    now = datetime.now(timezone.utc).replace(microsecond=0)
    token = auth.issue_token("abc123", now=now)

    claims = jwt.decode(token, "unit-secret", algorithms=["HS256"])
    assert claims["id"] == "abc123"
    assert claims["role"] == "Admin"
    assert claims["exp"] == int((now + timedelta(days=30)).timestamp())


def test_verify_token_round_trip(auth):
    claims = auth.verify_token(auth.issue_token("abc123"))
    assert claims["id"] == "abc123"


def test_verify_token_rejects_expired(auth):
    token = auth.issue_token("abc123", now=datetime.now(timezone.utc) - timedelta(days=31))
    with pytest.raises(AuthenticationError, match="expired"):
        auth.verify_token(token)


def test_verify_token_rejects_wrong_signature(auth):
    token = AuthService(secret="other-secret").issue_token("abc123")
    with pytest.raises(AuthenticationError):
        auth.verify_token(token)


def test_verify_token_rejects_non_admin_role(auth):
    token = jwt.encode({"id": "s1", "role": "Student"}, "unit-secret", algorithm="HS256")
    with pytest.raises(AuthorizationError):
        auth.verify_token(token)


def test_verify_token_requires_token(auth):
    with pytest.raises(AuthenticationError, match="No token"):
        auth.verify_token("")


def test_passwords_longer_than_72_bytes_are_truncated(auth):
    long_password = "p" * 72 + "ignored-suffix"
    hashed = auth.hash_password(long_password)
    assert auth.verify_password(long_password, hashed)
    assert auth.verify_password("p" * 72, hashed)
    assert not auth.verify_password("p" * 71, hashed)


def test_long_password_against_non_bcrypt_value_is_rejected(auth):
    assert not auth.verify_password("x" * 100, "not-a-bcrypt-hash")
