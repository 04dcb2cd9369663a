"""
Result Notifier.
Formats a candidate's outcome and delivers it to the owning recruiter.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional

import pytz

import config
from db_schema import STATUS_PASS, STATUS_FAIL, STATUS_NOT_QUALIFIED
from .email_workflow import render_result_table, send_assessment_result_email


logger = logging.getLogger(__name__)

SCORED_VERDICTS = (STATUS_PASS, STATUS_FAIL, STATUS_NOT_QUALIFIED)


def format_completion_time(moment: Optional[datetime] = None) -> str:
    tz = pytz.timezone(config.REPORT_TIMEZONE)
    moment = moment or datetime.now(pytz.utc)
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(tz).strftime("%d/%m/%Y, %I:%M:%S %p")


def _summary_for(status: str) -> str:
    if status in SCORED_VERDICTS:
        return "A candidate has completed their assessment. The results have been recorded."
    return "A candidate's assessment has ended. The results have been recorded."


async def notify_result(candidate: Dict[str, Any], completed_at: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Send the verdict summary to the recruiter stored on the candidate record.

    Best-effort: never raises. The verdict is already persisted when this runs.
    The completion time shown is the stored `completedAt` unless one is passed in.
    """
    recruiter_email = candidate.get("onboardedByTaEmail")
    if not recruiter_email:
        logger.info("No recruiter contact for %s; result mail skipped", candidate.get("username"))
        return {"status": "skipped", "message": "No recruiter contact recorded"}

    candidate_name = f"{candidate.get('firstName', '')} {candidate.get('lastName', '')}".strip()
    status = candidate.get("status") or ""
    table = render_result_table(
        candidate_name=candidate_name,
        username=candidate.get("username") or "",
        result=candidate.get("result") or "",
        score=candidate.get("score") or "",
        status=status,
        completed_at=format_completion_time(completed_at or candidate.get("completedAt")),
    )

    result = await send_assessment_result_email(
        recruiter_email,
        candidate.get("onboardedByTaName") or "",
        candidate_name,
        _summary_for(status),
        table,
    )
    if result["status"] == "success":
        logger.info("Result for %s sent to %s", candidate.get("username"), recruiter_email)
    elif result["status"] == "mocked":
        logger.info("Result for %s logged only, no mail transport", candidate.get("username"))
    else:
        logger.warning("Result mail for %s not delivered: %s", candidate.get("username"), result.get("message"))
    return result
