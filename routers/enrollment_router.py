from fastapi import APIRouter, Depends

from controller.enrollment_controller import get_me, onboard_staff, onboard_candidate, StaffOnboard, CandidateOnboard
from middleware.auth_middleware import User, authorize
from middleware.auth_utils import SCOPE_ENROLLMENT

router = APIRouter(prefix="/api/enrollment")

ALL_STAFF = ["TA", "Manager", "Owner"]
LEADS = ["Owner", "Manager"]

@router.get("/me")  # Called by: Enrollment dashboards | Returns: Logged-in user's profile
async def enrollment_me(user: User = Depends(authorize(SCOPE_ENROLLMENT, ALL_STAFF))):
    return await get_me(user)

@router.post("/tas/onboard", status_code=201)  # Called by: Manager/Owner dashboard | Returns: Onboarding confirmation
async def onboard_ta(payload: StaffOnboard, user: User = Depends(authorize(SCOPE_ENROLLMENT, LEADS))):
    return await onboard_staff(payload, user)

@router.post("/candidates/onboard", status_code=201)  # Called by: TA dashboard | Returns: Candidate onboarding confirmation
async def onboard_new_candidate(payload: CandidateOnboard, user: User = Depends(authorize(SCOPE_ENROLLMENT, ALL_STAFF))):
    return await onboard_candidate(payload, user)
