"""
Controller for admin authentication.
Handles enrollment and quizzer logins; test-taker login lives in exam_controller.
"""

import logging
from typing import Any, Dict

from pydantic import BaseModel

from db_manager import db_manager, with_db_retry, ENROLLMENT_USERS, QUIZZER_USERS
from errors import Unauthorized
from middleware.auth_utils import issue_token, token_ttl, verify_password, SCOPE_ENROLLMENT, SCOPE_QUIZZER


logger = logging.getLogger(__name__)


# Pydantic models for request bodies
class EmailLogin(BaseModel):
    email: str
    password: str


class UsernameLogin(BaseModel):
    username: str
    password: str


def _full_name(user: Dict[str, Any]) -> str:
    return f"{user.get('firstName', '')} {user.get('lastName', '')}".strip()


def _session(payload: Dict[str, Any]) -> Dict[str, Any]:
    access_token = issue_token(payload, token_ttl(payload["scope"]))
    return {"accessToken": access_token, "user": payload}


@with_db_retry
async def _find_user(collection_name: str, query: Dict[str, Any]):
    users = await db_manager.get_collection(collection_name)
    return await users.find_one(query)


async def handle_enrollment_login(credentials: EmailLogin) -> Dict[str, Any]:
    user = await _find_user(ENROLLMENT_USERS, {"email": credentials.email.strip().lower()})
    if not user or not verify_password(credentials.password, user.get("password")):
        logger.info("Enrollment login rejected for %s", credentials.email)
        raise Unauthorized("Invalid credentials")

    logger.info("Enrollment login for %s (%s)", user["email"], user["role"])
    return _session({
        "id": str(user["_id"]),
        "email": user["email"],
        "role": user["role"],
        "fullName": _full_name(user),
        "scope": SCOPE_ENROLLMENT,
    })


async def handle_quizzer_login(credentials: UsernameLogin) -> Dict[str, Any]:
    identifier = credentials.username.strip().lower()
    user = await _find_user(QUIZZER_USERS, {"$or": [{"email": identifier}, {"username": identifier}]})
    if not user or not verify_password(credentials.password, user.get("password")):
        logger.info("Quizzer login rejected for %s", credentials.username)
        raise Unauthorized("Invalid credentials")

    logger.info("Quizzer login for %s (%s)", user["username"], user["role"])
    return _session({
        "id": str(user["_id"]),
        "email": user["email"],
        "username": user["username"],
        "role": user["role"],
        "fullName": _full_name(user),
        "programme": user.get("programme"),
        "project": user.get("project"),
        "scope": SCOPE_QUIZZER,
    })
