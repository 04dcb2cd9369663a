from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime, timezone

from errors import ValidationError


TIERS = ("easy", "moderate", "hard")
MAX_REFERENCE_URLS = 4

ENROLLMENT_ROLES = ("TA", "Manager", "Owner")
QUIZZER_ROLES = ("Editor", "Manager", "Owner")

STATUS_MAIL_SENT = "Mail Sent"
STATUS_PASS = "Pass"
STATUS_FAIL = "Fail"
STATUS_NOT_QUALIFIED = "Not Qualified"


def _now():
    return datetime.now(timezone.utc)


class Candidate(BaseModel):
    """
    Pydantic model representing one assessment invitee.
    `result` doubles as the one-time gate: once it is non-empty the attempt is closed.
    """
    onboardedByTaName: str
    onboardedByTaEmail: str
    firstName: str
    lastName: str
    email: EmailStr
    contactNumber: Optional[str] = None
    program: str
    project: Optional[str] = None
    username: str
    password: str  # bcrypt hash
    status: str = STATUS_MAIL_SENT
    result: str = ""
    score: str = ""
    videoLink: str = ""
    createdAt: datetime = Field(default_factory=_now)


class QuestionBankItem(BaseModel):
    """
    Pydantic model for a single categorized question.
    """
    questionBankName: str
    questionId: str
    question: str
    referenceUrls: List[str] = []
    options: str = ""
    questionType: str
    correctAnswer: str = ""
    createdAt: datetime = Field(default_factory=_now)


class EnrollmentUser(BaseModel):
    firstName: str
    lastName: str
    email: EmailStr
    password: str
    role: str
    createdAt: datetime = Field(default_factory=_now)


class QuizzerUser(BaseModel):
    firstName: str
    lastName: str
    email: EmailStr
    username: str
    password: str
    role: str
    programme: Optional[str] = None
    project: Optional[str] = None
    createdAt: datetime = Field(default_factory=_now)


class Programme(BaseModel):
    name: str
    projects: List[str] = []


# Validation helpers. The models above only carry data.

def bank_name_for(program: Optional[str], project: Optional[str]) -> str:
    """Question bank name for a program/project pair, e.g. "Python Scripting"."""
    return f"{program or ''} {project or ''}".strip()


def normalize_tier(value: Optional[str]) -> str:
    tier = (value or "").strip().lower()
    if tier not in TIERS:
        raise ValidationError(f"Question type must be one of: {', '.join(TIERS)}")
    return tier


def reference_urls(*urls: Optional[str]) -> List[str]:
    return [u.strip() for u in urls if u and u.strip()][:MAX_REFERENCE_URLS]


def require_role(role: str, allowed) -> str:
    if role not in allowed:
        raise ValidationError("Invalid role for this application")
    return role


def public_view(doc: dict) -> dict:
    """Serialize a Mongo document for a response, dropping the password hash."""
    doc = dict(doc)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    doc.pop("password", None)
    return doc
