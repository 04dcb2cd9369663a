from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from errors import Forbidden, Unauthorized
from .auth_utils import verify_token


bearer = HTTPBearer(auto_error=False)


class User:
    def __init__(self, claims: Dict[str, Any]):
        self.claims = claims
        self.user_id = claims.get("id")
        self.scope = claims.get("scope")
        self.role = claims.get("role")
        self.email = claims.get("email")
        self.username = claims.get("username")
        self.full_name = claims.get("fullName")


@dataclass(frozen=True)
class AuthDecision:
    allowed: bool
    reason: Optional[str] = None


def check_scope(claims: Dict[str, Any], required_scope: str,
                allowed_roles: Optional[Sequence[str]] = None) -> AuthDecision:
    """Single gate for every scoped operation. Fails closed."""
    if claims.get("scope") != required_scope:
        return AuthDecision(False, "Forbidden: Invalid token scope for this action")
    if allowed_roles is not None and claims.get("role") not in allowed_roles:
        return AuthDecision(False, "Forbidden: You do not have permission for this action")
    return AuthDecision(True)


async def get_current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> User:
    """Read the bearer token and validate it"""
    if creds is None or not creds.credentials:
        raise Unauthorized("Unauthorized: No token provided")
    return User(verify_token(creds.credentials))


def authorize(required_scope: str, allowed_roles: Optional[Sequence[str]] = None):
    """Dependency factory: `user: User = Depends(authorize("quizzer", ["Owner"]))`."""

    async def checker(user: User = Depends(get_current_user)) -> User:
        decision = check_scope(user.claims, required_scope, allowed_roles)
        if not decision.allowed:
            raise Forbidden(decision.reason)
        return user

    return checker


def authorize_any(scopes: Sequence[str]):
    """Allow any of several scopes, regardless of role."""

    async def checker(user: User = Depends(get_current_user)) -> User:
        if not any(check_scope(user.claims, scope).allowed for scope in scopes):
            raise Forbidden("Forbidden")
        return user

    return checker
