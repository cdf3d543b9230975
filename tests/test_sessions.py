"""Session credentials and security primitives."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.core.errors import (
    ExpiredCredential,
    MalformedCredential,
    MissingCredential,
    Unauthenticated,
)
from app.core.security import hash_password, mint_token, verify_password
from app.services.sessions import SessionAuthenticator


def test_issue_then_verify_resolves_account_id(authenticator, alice):
    credential = authenticator.issue(alice)

    assert authenticator.verify(credential) == alice.id


@pytest.mark.parametrize("credential", [None, ""])
def test_missing_credential(authenticator, credential):
    with pytest.raises(MissingCredential):
        authenticator.verify(credential)


def test_garbage_credential_is_malformed(authenticator):
    with pytest.raises(MalformedCredential):
        authenticator.verify("not-a-jwt")


def test_tampered_signature_is_malformed(settings, authenticator, alice):
    forged = jwt.encode(
        {"sub": str(alice.id), "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret-key-of-reasonable-length",
        algorithm="HS256",
    )

    with pytest.raises(MalformedCredential):
        authenticator.verify(forged)


def test_credential_without_subject_is_malformed(settings, authenticator):
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.secret_key,
        algorithm="HS256",
    )

    with pytest.raises(MalformedCredential):
        authenticator.verify(token)


def test_expired_credential(authenticator, alice):
    issued_long_ago = datetime.now(timezone.utc) - timedelta(hours=1)
    credential = authenticator.issue(alice, now=issued_long_ago)

    with pytest.raises(ExpiredCredential):
        authenticator.verify(credential)


def test_failure_kinds_share_one_public_outcome():
    for exc in (MissingCredential(), MalformedCredential(), ExpiredCredential()):
        assert isinstance(exc, Unauthenticated)
        assert exc.status_code == 401
        assert exc.to_dict() == {"error": "unauthenticated", "message": "Authentication required"}


def test_ttl_follows_settings(settings):
    assert SessionAuthenticator(settings).ttl_seconds == settings.session_ttl_minutes * 60


def test_minted_tokens_are_long_and_distinct():
    tokens = {mint_token() for _ in range(200)}

    assert len(tokens) == 200
    assert all(len(token) == 64 for token in tokens)


def test_password_hash_is_salted():
    first, second = hash_password("secret123"), hash_password("secret123")

    assert first != second
    assert "secret123" not in first
    assert verify_password(first, "secret123")
    assert not verify_password(first, "secret124")
    assert not verify_password(None, "secret123")
