"""
Runtime configuration.
Values come from the environment (and a local .env file when present).
"""

import os
from dotenv import load_dotenv


# Load environment variables
load_dotenv(override=False)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


MONGO_URI = os.getenv("MONGODB_URI")
DB_NAME = os.getenv("MONGODB_DATABASE")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ADMIN_TOKEN_HOURS = int(os.getenv("ADMIN_TOKEN_HOURS", "8"))
TEST_TOKEN_HOURS = int(os.getenv("TEST_TOKEN_HOURS", "3"))

# Exam scoring
PASS_THRESHOLD = float(os.getenv("PASS_THRESHOLD", "0.75"))
MIN_ATTEMPTED_QUESTIONS = int(os.getenv("MIN_ATTEMPTED_QUESTIONS", "15"))
EXPOSE_EXAM_ANSWERS = _env_bool("EXPOSE_EXAM_ANSWERS", True)

# Mail
EMAIL_SERVICE = os.getenv("EMAIL_SERVICE", "sendgrid").lower()
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
FROM_EMAIL = os.getenv("FROM_EMAIL", os.getenv("MAIL_USER", "noreply@yourdomain.com"))
MAIL_HOST = os.getenv("MAIL_HOST")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_USER = os.getenv("MAIL_USER")
MAIL_PASS = os.getenv("MAIL_PASS")
MAIL_TIMEOUT_SECONDS = int(os.getenv("MAIL_TIMEOUT_SECONDS", "10"))
APP_URL = os.getenv("APP_URL", "#")
REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "Asia/Kolkata")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
