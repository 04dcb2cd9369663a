"""
Authentication utilities.
Signed session tokens, password hashing and one-time password generation.
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

import config
from errors import Unauthorized


SCOPE_ENROLLMENT = "enrollment"
SCOPE_QUIZZER = "quizzer"
SCOPE_TEST_TAKER = "test-taker"
ADMIN_SCOPES = (SCOPE_ENROLLMENT, SCOPE_QUIZZER)

PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


def token_ttl(scope: str) -> timedelta:
    """Admin sessions last a working day; test sessions bound the exam duration."""
    if scope == SCOPE_TEST_TAKER:
        return timedelta(hours=config.TEST_TOKEN_HOURS)
    return timedelta(hours=config.ADMIN_TOKEN_HOURS)


def issue_token(claims: Dict[str, Any], ttl: timedelta) -> str:
    if not claims.get("scope"):
        raise ValueError("Token claims must carry a scope")
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + ttl
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Session expired, please login again")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_password(length: int = 8) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
