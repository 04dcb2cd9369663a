import asyncio
from datetime import timedelta

import jwt
import pytest

import config
import db_manager as db_module
from errors import DatabaseUnavailable, Unauthorized
from middleware.auth_middleware import check_scope
from middleware.auth_utils import (
    generate_password, hash_password, issue_token, token_ttl, verify_password, verify_token,
)
import pymongo.errors


def test_token_round_trip_keeps_claims():
    token = issue_token({"id": "abc", "role": "Owner", "scope": "quizzer"}, timedelta(minutes=5))
    claims = verify_token(token)
    assert claims["id"] == "abc"
    assert claims["role"] == "Owner"
    assert claims["scope"] == "quizzer"
    assert claims["exp"] - claims["iat"] == 300


def test_token_requires_scope():
    with pytest.raises(ValueError):
        issue_token({"id": "abc"}, timedelta(minutes=5))


def test_expired_token_is_unauthorized():
    token = issue_token({"id": "abc", "scope": "test-taker"}, timedelta(seconds=-1))
    with pytest.raises(Unauthorized) as exc:
        verify_token(token)
    assert exc.value.status_code == 401
    assert "expired" in exc.value.detail


def test_foreign_signature_is_unauthorized():
    token = jwt.encode({"id": "abc", "scope": "quizzer"}, "some-other-secret", algorithm="HS256")
    with pytest.raises(Unauthorized):
        verify_token(token)


def test_garbage_token_is_unauthorized():
    with pytest.raises(Unauthorized):
        verify_token("not-a-token")


def test_token_ttl_per_scope():
    assert token_ttl("test-taker") == timedelta(hours=config.TEST_TOKEN_HOURS)
    assert token_ttl("enrollment") == timedelta(hours=config.ADMIN_TOKEN_HOURS)
    assert token_ttl("quizzer") == timedelta(hours=config.ADMIN_TOKEN_HOURS)


@pytest.mark.parametrize("claims, scope, roles, allowed", [
    ({"scope": "quizzer", "role": "Editor"}, "quizzer", ["Owner", "Manager", "Editor"], True),
    ({"scope": "quizzer", "role": "Editor"}, "quizzer", ["Owner", "Manager"], False),
    ({"scope": "enrollment", "role": "Owner"}, "quizzer", ["Owner"], False),
    ({"scope": "test-taker"}, "test-taker", None, True),
    ({"scope": "quizzer", "role": "Owner"}, "test-taker", None, False),
    ({}, "enrollment", None, False),
])
def test_check_scope(claims, scope, roles, allowed):
    assert check_scope(claims, scope, roles).allowed is allowed


def test_check_scope_explains_denial():
    decision = check_scope({"scope": "quizzer", "role": "Editor"}, "enrollment")
    assert decision.reason == "Forbidden: Invalid token scope for this action"


def test_password_hashing():
    hashed = hash_password("secret12")
    assert hashed != "secret12"
    assert verify_password("secret12", hashed)
    assert not verify_password("secret13", hashed)
    assert not verify_password("secret12", "plain-text-value")
    assert not verify_password("", hashed)


def test_generated_passwords():
    password = generate_password()
    assert len(password) == 8
    assert password.isalnum() and password == password.lower()


def test_db_retry_gives_up_with_503(monkeypatch):
    monkeypatch.setattr(db_module, "RETRY_DELAY_SECONDS", 0)
    calls = []

    @db_module.with_db_retry
    async def flaky():
        calls.append(1)
        raise pymongo.errors.NetworkTimeout("timed out")

    with pytest.raises(DatabaseUnavailable) as exc:
        asyncio.run(flaky())
    assert exc.value.status_code == 503
    assert len(calls) == db_module.RETRY_ATTEMPTS


def test_db_retry_recovers(monkeypatch):
    monkeypatch.setattr(db_module, "RETRY_DELAY_SECONDS", 0)
    calls = []

    @db_module.with_db_retry
    async def flaky():
        calls.append(1)
        if len(calls) < 2:
            raise pymongo.errors.AutoReconnect("primary stepped down")
        return "ok"

    assert asyncio.run(flaky()) == "ok"
    assert len(calls) == 2
