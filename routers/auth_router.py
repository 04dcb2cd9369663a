from fastapi import APIRouter

from controller.auth_controller import handle_enrollment_login, handle_quizzer_login, EmailLogin, UsernameLogin
from controller.exam_controller import authenticate_candidate

router = APIRouter(prefix="/api")

# One login per portal; each issues a token for its own scope
@router.post("/enrollment/auth/login")  # Called by: Enrollment login form | Returns: accessToken + user claims
async def enrollment_login(credentials: EmailLogin):
    return await handle_enrollment_login(credentials)

@router.post("/quizzer/auth/login")  # Called by: Quizzer login form | Returns: accessToken + user claims
async def quizzer_login(credentials: UsernameLogin):
    return await handle_quizzer_login(credentials)

@router.post("/test/auth/login")  # Called by: Test login form | Returns: test-taker accessToken + exam page
async def test_login(credentials: UsernameLogin):
    return await authenticate_candidate(credentials.username, credentials.password)
