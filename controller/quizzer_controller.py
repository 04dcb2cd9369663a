"""
Controller for the quizzer portal.
Registers bank editors and exposes the programme / question bank catalog.
"""

import logging
from typing import Any, Dict, List, Optional

import pymongo.errors
from pydantic import BaseModel, EmailStr

from db_manager import db_manager, with_db_retry, PROGRAMMES, QUIZZER_USERS
from db_schema import Programme, QuizzerUser, QUIZZER_ROLES, bank_name_for, require_role
from errors import Conflict, Forbidden
from middleware.auth_middleware import User
from middleware.auth_utils import generate_password, hash_password
from workflow.email_notifications.email_workflow import send_staff_credentials_email


logger = logging.getLogger(__name__)


class QuizzerRegister(BaseModel):
    firstName: str
    lastName: str
    email: EmailStr
    role: str
    programme: Optional[str] = None
    project: Optional[str] = None


def quizzer_username(first_name: str, last_name: str) -> str:
    return f"{first_name.strip().lower()}.{last_name.strip().lower()[:1]}"


@with_db_retry
async def _add_project(programme: str, project: str):
    programmes = await db_manager.get_collection(PROGRAMMES)
    await programmes.update_one({"name": programme}, {"$addToSet": {"projects": project}}, upsert=True)


@with_db_retry
async def _insert_quizzer_user(doc: Dict[str, Any]):
    users = await db_manager.get_collection(QUIZZER_USERS)
    if await users.find_one({"email": doc["email"]}):
        raise Conflict("User with this email already exists")
    try:
        await users.insert_one(doc)
    except pymongo.errors.DuplicateKeyError:
        raise Conflict("User with this email or username already exists")


async def register_user(payload: QuizzerRegister, user: User) -> Dict[str, Any]:
    role = require_role(payload.role, QUIZZER_ROLES)
    if role == "Owner" and user.role != "Owner":
        raise Forbidden("Forbidden: Only Owners can create other Owners.")

    if payload.programme and payload.project:
        await _add_project(payload.programme, payload.project)

    email = payload.email.lower()
    username = quizzer_username(payload.firstName, payload.lastName)
    password = generate_password()
    member = QuizzerUser(
        firstName=payload.firstName,
        lastName=payload.lastName,
        email=email,
        username=username,
        password=hash_password(password),
        role=role,
        programme=payload.programme,
        project=payload.project,
    )
    await _insert_quizzer_user(member.model_dump())
    logger.info("%s registered quizzer user %s as %s", user.username, username, role)

    await send_staff_credentials_email(
        email, f"{payload.firstName} {payload.lastName}".strip(), role, username, password,
        "Quizzer Admin Tool", "quizzer",
    )
    return {"success": True, "message": "New user registered successfully!", "username": username}


@with_db_retry
async def _all_programmes() -> List[Programme]:
    programmes = await db_manager.get_collection(PROGRAMMES)
    docs = await programmes.find({}).to_list(length=None)
    return [Programme(**doc) for doc in docs]


async def list_programmes() -> Dict[str, Any]:
    docs = await _all_programmes()
    return {"success": True, "data": {p.name: p.projects for p in docs}}


async def get_access_data(user: User):
    """Banks the caller may manage: every bank for an Owner, the own programme's banks for a Manager."""
    docs = await _all_programmes()
    if user.role == "Owner":
        return {
            p.name: [{"project": proj, "sheetName": bank_name_for(p.name, proj)} for proj in p.projects]
            for p in docs
        }

    programme = user.claims.get("programme")
    for p in docs:
        if p.name == programme:
            return [{"project": proj, "sheetName": bank_name_for(p.name, proj)} for proj in p.projects]
    return []
