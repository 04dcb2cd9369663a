"""
Error taxonomy for the assessment API.
Every error is an HTTPException so controllers can raise it directly.
"""

from fastapi import HTTPException


class AssessmentError(HTTPException):
    status_code = 500
    code = "InternalError"
    default_message = "An unexpected error occurred."

    def __init__(self, message: str = None):
        super().__init__(status_code=self.status_code, detail=message or self.default_message)

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(AssessmentError):
    status_code = 400
    code = "ValidationError"
    default_message = "Missing or malformed input."


class Unauthorized(AssessmentError):
    status_code = 401
    code = "Unauthorized"
    default_message = "Invalid credentials."


class Forbidden(AssessmentError):
    status_code = 403
    code = "Forbidden"
    default_message = "Forbidden: You do not have permission for this action."


class AlreadyAttempted(Forbidden):
    code = "AlreadyAttempted"
    default_message = "The test has already been attempted with these credentials."


class AlreadySubmitted(Forbidden):
    code = "AlreadySubmitted"
    default_message = "Test has already been submitted."


class NotFound(AssessmentError):
    status_code = 404
    code = "NotFound"
    default_message = "Not found."


class Conflict(AssessmentError):
    status_code = 409
    code = "Conflict"
    default_message = "A record with this key already exists."


class InternalError(AssessmentError):
    pass


class DatabaseUnavailable(InternalError):
    status_code = 503
    code = "DatabaseUnavailable"
    default_message = "Database connection failed. Please try again later."
