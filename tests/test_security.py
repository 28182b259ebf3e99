from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select

import videohub.db.session as db_session
from videohub.core.errors import AuthError
from videohub.core.security import (
    TokenConfig,
    TokenExpired,
    TokenInvalid,
    TokenIssuer,
    TokenVerifier,
    hash_password,
    verify_password,
)
from videohub.models import User
from videohub.services import auth_service

CLAIMS = {"sub": "user-1", "username": "ana", "email": "a@x.com", "full_name": "Ana"}


def _config(**overrides) -> TokenConfig:
    values = {
        "access_secret": "access-secret",
        "refresh_secret": "refresh-secret",
        "access_ttl": timedelta(minutes=5),
        "refresh_ttl": timedelta(days=1),
    }
    values.update(overrides)
    return TokenConfig(**values)


class _UntouchableSession:
    def get(self, *args, **kwargs):
        raise AssertionError("store must not be consulted for a rejected token")


def test_password_hashing_round_trip():
    plain_password = "secret1"
    hashed_password = hash_password(plain_password)

    assert hashed_password != plain_password
    assert verify_password(plain_password, hashed_password)
    assert not verify_password("secret2", hashed_password)


def test_password_hashes_are_salted():
    assert hash_password("secret1") != hash_password("secret1")


def test_issued_tokens_carry_identity_claims():
    config = _config()
    issuer = TokenIssuer(config)
    verifier = TokenVerifier(config)

    claims = verifier.verify(issuer.issue_access_token(CLAIMS), "access")
    assert {key: claims[key] for key in CLAIMS} == CLAIMS
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == 300

    refresh_claims = verifier.verify(issuer.issue_refresh_token(CLAIMS), "refresh")
    assert refresh_claims["type"] == "refresh"
    assert refresh_claims["exp"] - refresh_claims["iat"] == 86400


def test_tokens_issued_together_are_distinct():
    issuer = TokenIssuer(_config())
    assert issuer.issue_refresh_token(CLAIMS) != issuer.issue_refresh_token(CLAIMS)


def test_verifier_rejects_wrong_secret_and_wrong_type():
    config = _config()
    issuer = TokenIssuer(config)
    verifier = TokenVerifier(config)

    with pytest.raises(TokenInvalid):
        verifier.verify(issuer.issue_access_token(CLAIMS), "refresh")

    with pytest.raises(TokenInvalid):
        TokenVerifier(_config(access_secret="other")).verify(issuer.issue_access_token(CLAIMS), "access")

    shared = _config(refresh_secret="access-secret")
    with pytest.raises(TokenInvalid):
        TokenVerifier(shared).verify(TokenIssuer(shared).issue_access_token(CLAIMS), "refresh")


def test_verifier_rejects_expired_token():
    config = _config()
    past_issuer = TokenIssuer(config, clock=lambda: datetime.now(UTC) - timedelta(days=2))

    with pytest.raises(TokenExpired):
        TokenVerifier(config).verify(past_issuer.issue_refresh_token(CLAIMS), "refresh")


def test_expired_or_forged_refresh_fails_before_store_lookup():
    config = _config()
    verifier = TokenVerifier(config)
    expired = TokenIssuer(config, clock=lambda: datetime.now(UTC) - timedelta(days=2)).issue_refresh_token(CLAIMS)
    forged = TokenIssuer(_config(refresh_secret="forged")).issue_refresh_token(CLAIMS)

    with pytest.raises(AuthError) as expired_error:
        auth_service.rotate_refresh_token(_UntouchableSession(), expired, issuer=TokenIssuer(config), verifier=verifier)
    assert expired_error.value.code == "refresh_token_expired"

    with pytest.raises(AuthError) as forged_error:
        auth_service.rotate_refresh_token(_UntouchableSession(), forged, issuer=TokenIssuer(config), verifier=verifier)
    assert forged_error.value.code == "invalid_refresh_token"


def test_password_hash_only_recomputed_when_password_changes(client):
    session_factory = db_session.SessionLocal
    assert session_factory is not None
    with session_factory() as session:
        user = User(
            username="ana",
            email="a@x.com",
            full_name="Ana",
            password="secret1",
            avatar_url="https://media.test/a.png",
        )
        session.add(user)
        session.commit()
        original_hash = user.password_hash

        user.refresh_token = "some-token"
        user.full_name = "Ana Maria"
        session.commit()
        assert session.scalar(select(User.password_hash).where(User.id == user.id)) == original_hash
        assert user.is_password_correct("secret1")

        user.password = "secret2"
        session.commit()
        assert user.password_hash != original_hash
        assert user.is_password_correct("secret2")
        assert not user.is_password_correct("secret1")


def test_password_is_write_only():
    user = User(password="secret1")
    with pytest.raises(AttributeError):
        _ = user.password
