"""
Test-taker Router.
Exam setup and the two terminal transitions, all behind the test-taker scope.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from controller.exam_controller import fetch_exam, submit_exam, fail_exam
from middleware.auth_middleware import User, authorize
from middleware.auth_utils import SCOPE_TEST_TAKER

router = APIRouter(prefix="/api/test")


class ExamSubmission(BaseModel):
    percentage: float
    scoreString: Optional[str] = None
    attemptedQuestions: Optional[int] = None


class ExamFailure(BaseModel):
    failureReason: str


@router.get("/setup")
async def exam_setup(user: User = Depends(authorize(SCOPE_TEST_TAKER))):
    """Return the candidate's details and a freshly assembled exam."""
    return await fetch_exam(user.claims)


@router.post("/submit")
async def exam_submit(submission: ExamSubmission, user: User = Depends(authorize(SCOPE_TEST_TAKER))):
    """Record the verdict. Only the first submit or fail for a candidate is kept."""
    return await submit_exam(user.claims, submission.percentage, submission.scoreString, submission.attemptedQuestions)


@router.post("/fail")
async def exam_fail(failure: ExamFailure, user: User = Depends(authorize(SCOPE_TEST_TAKER))):
    """Record a disqualification (e.g. tab switch) reported by the client."""
    return await fail_exam(user.claims, failure.failureReason)
