from fastapi import APIRouter, Depends

from controller.quizzer_controller import list_programmes
from db_manager import db_manager
from middleware.auth_middleware import User, authorize_any
from middleware.auth_utils import ADMIN_SCOPES

router = APIRouter(prefix="/api")

@router.get("/health")  # Called by: Load balancer / uptime checks | Returns: Service and database status
async def health():
    database_ok = await db_manager.health_check()
    return {"status": "ok", "message": "Server is running", "database": "ok" if database_ok else "unavailable"}

@router.get("/programmes")  # Called by: Enrollment and quizzer dashboards | Returns: Programme -> projects map
async def get_programmes(user: User = Depends(authorize_any(ADMIN_SCOPES))):
    return await list_programmes()
