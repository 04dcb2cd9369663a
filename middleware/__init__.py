"""
Middleware package for the assessment application.
Contains authentication and scope authorization components.
"""

from .auth_middleware import (
    User,
    AuthDecision,
    check_scope,
    get_current_user,
    authorize,
    authorize_any
)

__all__ = [
    "User",
    "AuthDecision",
    "check_scope",
    "get_current_user",
    "authorize",
    "authorize_any"
]
