"""
Controller for the enrollment portal.
Onboards recruiters (TA / Manager / Owner) and assessment candidates.
"""

import logging
from typing import Any, Dict, Optional

import pymongo.errors
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, EmailStr

from db_manager import db_manager, with_db_retry, CANDIDATES, ENROLLMENT_USERS
from db_schema import Candidate, EnrollmentUser, ENROLLMENT_ROLES, require_role
from errors import Conflict, Forbidden, NotFound
from middleware.auth_middleware import User
from middleware.auth_utils import generate_password, hash_password
from workflow.email_notifications.email_workflow import send_candidate_invitation_email, send_staff_credentials_email


logger = logging.getLogger(__name__)


class StaffOnboard(BaseModel):
    firstName: str
    lastName: str
    email: EmailStr
    role: str


class CandidateOnboard(BaseModel):
    firstName: str
    lastName: str
    email: EmailStr
    contactNumber: Optional[str] = None
    program: str
    project: Optional[str] = None


@with_db_retry
async def _insert_unique(collection_name: str, doc: Dict[str, Any], conflict_message: str):
    collection = await db_manager.get_collection(collection_name)
    if await collection.find_one({"email": doc["email"]}):
        raise Conflict(conflict_message)
    try:
        await collection.insert_one(doc)
    except pymongo.errors.DuplicateKeyError:
        raise Conflict(conflict_message)


@with_db_retry
async def get_me(user: User) -> Dict[str, Any]:
    users = await db_manager.get_collection(ENROLLMENT_USERS)
    try:
        doc = await users.find_one({"_id": ObjectId(user.user_id)})
    except (InvalidId, TypeError):
        doc = None
    if not doc:
        raise NotFound("User not found")
    return {
        "success": True,
        "fullName": f"{doc['firstName']} {doc['lastName']}".strip(),
        "email": doc["email"],
        "role": doc["role"],
    }


async def onboard_staff(payload: StaffOnboard, user: User) -> Dict[str, Any]:
    role = require_role(payload.role, ENROLLMENT_ROLES)
    if role == "Owner" and user.role != "Owner":
        raise Forbidden("Forbidden: Only Owners can create other Owners.")

    email = payload.email.lower()
    password = generate_password()
    staff = EnrollmentUser(
        firstName=payload.firstName,
        lastName=payload.lastName,
        email=email,
        password=hash_password(password),
        role=role,
    )
    await _insert_unique(ENROLLMENT_USERS, staff.model_dump(), "User with this email already exists")
    logger.info("%s onboarded enrollment user %s as %s", user.email, email, role)

    mail = await send_staff_credentials_email(
        email, f"{payload.firstName} {payload.lastName}".strip(), role, email, password,
        "TA Onboarding Portal", "enrollment",
    )
    message = "New user onboarded and credential email sent successfully!"
    if mail["status"] != "success":
        message = "New user onboarded, but the credential email could not be sent."
    return {"success": True, "message": message}


async def onboard_candidate(payload: CandidateOnboard, user: User) -> Dict[str, Any]:
    """Create the invitee record (status "Mail Sent") and mail the one-time credentials."""
    email = payload.email.lower()
    password = generate_password()
    candidate = Candidate(
        onboardedByTaName=user.full_name or "",
        onboardedByTaEmail=user.email or "",
        firstName=payload.firstName,
        lastName=payload.lastName,
        email=email,
        contactNumber=payload.contactNumber,
        program=payload.program.strip(),
        project=(payload.project or "").strip() or None,
        username=email,
        password=hash_password(password),
    )
    await _insert_unique(CANDIDATES, candidate.model_dump(), "Candidate with this email already exists")
    logger.info("%s onboarded candidate %s for %s %s", user.email, email, candidate.program, candidate.project or "")

    mail = await send_candidate_invitation_email(
        email, f"{payload.firstName} {payload.lastName}".strip(), email, password,
    )
    message = "Candidate onboarded and assessment email sent successfully!"
    if mail["status"] != "success":
        message = "Candidate onboarded, but the assessment email could not be sent."
    return {"success": True, "message": message}
