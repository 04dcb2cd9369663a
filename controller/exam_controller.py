"""
Controller for the candidate exam lifecycle.
Invited -> Authenticated (token issued, result empty) -> Closed (result set, terminal).
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument

import config
from db_manager import db_manager, with_db_retry, CANDIDATES
from db_schema import bank_name_for, STATUS_PASS, STATUS_FAIL, STATUS_NOT_QUALIFIED
from errors import AlreadyAttempted, AlreadySubmitted, NotFound, Unauthorized, ValidationError
from middleware.auth_utils import issue_token, token_ttl, verify_password, SCOPE_TEST_TAKER
from workflow.exam_assembler import assemble_exam
from workflow.email_notifications.email_service import notify_result


logger = logging.getLogger(__name__)

# Matches a record whose attempt is still open. Null also matches a missing field.
OPEN_ATTEMPT = {"$in": [None, ""]}
SCORE_PATTERN = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")
DISQUALIFIED_SCORE = "0.0%"
DISQUALIFIED_RESULT = "0 / 0"


def is_closed(candidate: Dict[str, Any]) -> bool:
    return bool(candidate.get("result"))


def exam_page_for(bank_name: str) -> str:
    return re.sub(r"\s+", "_", bank_name.replace("&", "and")) + "_test"


def compute_verdict(attempted: int, percentage: float) -> str:
    """The attempted-count floor dominates the percentage."""
    if attempted < config.MIN_ATTEMPTED_QUESTIONS:
        return STATUS_NOT_QUALIFIED
    if percentage >= config.PASS_THRESHOLD:
        return STATUS_PASS
    return STATUS_FAIL


def format_score(percentage: float) -> str:
    return f"{percentage * 100:.1f}%"


def resolve_attempt(percentage: float, score_string: Optional[str], attempted_questions: Optional[int]):
    """Return (attempted count, result label) from the submitted figures."""
    if percentage is None or not 0 <= percentage <= 1:
        raise ValidationError("percentage must be a fraction between 0 and 1")

    if attempted_questions is not None and attempted_questions < 0:
        raise ValidationError("attemptedQuestions cannot be negative")

    if score_string:
        match = SCORE_PATTERN.match(score_string)
        if not match:
            raise ValidationError("scoreString must look like 'X / Y'")
        if int(match.group(1)) > int(match.group(2)):
            raise ValidationError("scoreString cannot have more correct answers than attempted questions")
        attempted = attempted_questions if attempted_questions is not None else int(match.group(2))
        return attempted, f"{match.group(1)} / {match.group(2)}"

    if attempted_questions is None:
        raise ValidationError("Either scoreString or attemptedQuestions is required")
    return attempted_questions, f"{round(percentage * attempted_questions)} / {attempted_questions}"


def _object_id(candidate_id: str) -> ObjectId:
    try:
        return ObjectId(candidate_id)
    except (InvalidId, TypeError):
        raise NotFound("User not found.")


@with_db_retry
async def _find_candidate(query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    candidates = await db_manager.get_collection(CANDIDATES)
    return await candidates.find_one(query)


@with_db_retry
async def _close_attempt(candidate_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Write the verdict only if the attempt is still open.

    One conditional update: of any number of concurrent submit/fail calls,
    exactly one matches the filter.
    """
    oid = _object_id(candidate_id)
    candidates = await db_manager.get_collection(CANDIDATES)
    updated = await candidates.find_one_and_update(
        {"_id": oid, "result": OPEN_ATTEMPT},
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    if updated is not None:
        return updated

    if await candidates.find_one({"_id": oid}) is None:
        raise NotFound("User not found.")
    logger.warning("Rejected replayed completion for candidate %s", candidate_id)
    raise AlreadySubmitted("Test already submitted.")


async def authenticate_candidate(username: str, password: str) -> Dict[str, Any]:
    """Verify the one-time credential and issue a test-taker token."""
    candidate = await _find_candidate({"username": (username or "").strip().lower()})
    if not candidate or not verify_password(password, candidate.get("password")):
        logger.info("Test login rejected for %s", username)
        raise Unauthorized("Invalid username or password.")

    if is_closed(candidate) or candidate.get("status") in (STATUS_PASS, STATUS_FAIL):
        logger.info("Test login for closed attempt %s", candidate["username"])
        raise AlreadyAttempted()

    bank_name = bank_name_for(candidate.get("program"), candidate.get("project"))
    claims = {
        "id": str(candidate["_id"]),
        "username": candidate["username"],
        "questionBankName": bank_name,
        "scope": SCOPE_TEST_TAKER,
    }
    access_token = issue_token(claims, token_ttl(SCOPE_TEST_TAKER))
    logger.info("Exam token issued to %s for bank '%s'", candidate["username"], bank_name)
    return {"success": True, "accessToken": access_token, "page": exam_page_for(bank_name)}


async def fetch_exam(claims: Dict[str, Any]) -> Dict[str, Any]:
    """Assemble the exam for a token holder whose attempt is still open. Does not mutate the record."""
    candidate = await _find_candidate({"_id": _object_id(claims.get("id"))})
    if not candidate:
        raise NotFound("User not found.")
    if is_closed(candidate):
        raise AlreadySubmitted()

    bank_name = claims.get("questionBankName")
    questions = await assemble_exam(bank_name)
    return {
        "success": True,
        "userDetails": {"level": bank_name, "username": claims.get("username")},
        "questions": questions,
    }


async def submit_exam(claims: Dict[str, Any], percentage: float, score_string: Optional[str] = None,
                      attempted_questions: Optional[int] = None) -> Dict[str, Any]:
    attempted, result_label = resolve_attempt(percentage, score_string, attempted_questions)
    verdict = compute_verdict(attempted, percentage)

    candidate = await _close_attempt(claims.get("id"), {
        "score": format_score(percentage),
        "result": result_label,
        "status": verdict,
        "videoLink": "",
        "completedAt": datetime.now(timezone.utc),
    })
    logger.info("Verdict '%s' (%s, %s) recorded for %s",
                verdict, candidate["result"], candidate["score"], candidate.get("username"))

    mail = await notify_result(candidate)
    message = "Test submitted and email sent." if mail["status"] == "success" else "Test submitted."
    return {"success": True, "message": message, "status": verdict, "score": candidate["score"]}


async def fail_exam(claims: Dict[str, Any], reason: str) -> Dict[str, Any]:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("failureReason is required")

    candidate = await _close_attempt(claims.get("id"), {
        "score": DISQUALIFIED_SCORE,
        "result": DISQUALIFIED_RESULT,
        "status": reason,
        "videoLink": reason,
        "completedAt": datetime.now(timezone.utc),
    })
    logger.info("Disqualification '%s' recorded for %s", reason, candidate.get("username"))

    mail = await notify_result(candidate)
    message = "Failure recorded and email sent." if mail["status"] == "success" else "Failure recorded."
    return {"success": True, "message": message}
