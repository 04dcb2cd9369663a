import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from db_manager import db_manager
from errors import AssessmentError, ValidationError

# Import routers
from routers.auth_router import router as auth_router
from routers.global_router import router as global_router
from routers.enrollment_router import router as enrollment_router
from routers.quizzer_router import router as quizzer_router
from routers.exam_router import router as exam_router


logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Candidate Assessment API", version="1.0.0")


@app.on_event("startup")
async def startup_event():
    """Create unique indexes on startup."""
    try:
        await db_manager.ensure_indexes()
        logger.info("Database indexes ensured")
    except Exception as e:
        logger.error("Failed to ensure database indexes: %s", e)


@app.on_event("shutdown")
async def shutdown_event():
    db_manager.close()


def _error_body(code: str, message: str) -> dict:
    return {"success": False, "error": code, "message": message}


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())[1:])}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=_error_body(ValidationError.code, problems or ValidationError.default_message),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("InternalError", "An unexpected error occurred."))


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(global_router)
app.include_router(enrollment_router)
app.include_router(quizzer_router)
app.include_router(exam_router)

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
