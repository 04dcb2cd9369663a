import asyncio
import functools
import logging

import pymongo
import pymongo.errors
from motor.motor_asyncio import AsyncIOMotorClient

import config
from errors import DatabaseUnavailable


logger = logging.getLogger(__name__)

CANDIDATES = "candidates"
QUESTIONS = "questions"
COUNTERS = "counters"
PROGRAMMES = "programmes"
ENROLLMENT_USERS = "enrollment_users"
QUIZZER_USERS = "quizzer_users"

# Unique keys are load-bearing: duplicate candidates or question ids must be impossible.
UNIQUE_INDEXES = {
    CANDIDATES: ["email", "username"],
    QUESTIONS: ["questionId"],
    PROGRAMMES: ["name"],
    ENROLLMENT_USERS: ["email"],
    QUIZZER_USERS: ["email", "username"],
}

TRANSIENT_ERRORS = (
    pymongo.errors.NetworkTimeout,
    pymongo.errors.ServerSelectionTimeoutError,
    pymongo.errors.AutoReconnect,
)
RETRY_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1


class Database:
    def __init__(self):
        self.client = None
        self.db = None

    def _ensure_client(self):
        if self.client is None:
            if not config.MONGO_URI or not config.DB_NAME:
                raise ValueError("MONGODB_URI and MONGODB_DATABASE must be set in environment/.env")
            self.client = AsyncIOMotorClient(
                config.MONGO_URI,
                serverSelectionTimeoutMS=30000,
                connectTimeoutMS=20000,
                socketTimeoutMS=60000,
                maxPoolSize=20,
                minPoolSize=1,
                retryWrites=True,
                readPreference='primaryPreferred',
                w='majority',
                wtimeoutMS=30000,
                heartbeatFrequencyMS=10000,
                maxIdleTimeMS=30000
            )
            self.db = self.client[config.DB_NAME]

    async def get_collection(self, collection_name: str):
        self._ensure_client()
        return self.db[collection_name]

    async def ensure_indexes(self):
        """Create the unique indexes and the bank lookup index."""
        for collection_name, fields in UNIQUE_INDEXES.items():
            collection = await self.get_collection(collection_name)
            for field in fields:
                await collection.create_index(field, unique=True)
        questions = await self.get_collection(QUESTIONS)
        await questions.create_index([("questionBankName", pymongo.ASCENDING)])

    async def health_check(self):
        """Check if database connection is healthy"""
        try:
            self._ensure_client()
            await self.client.admin.command('ping')
            return True
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return False

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            self.db = None


db_manager = Database()


def with_db_retry(func):
    """Retry a coroutine on transient MongoDB errors, then fail with a 503."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        for attempt in range(RETRY_ATTEMPTS):
            try:
                return await func(*args, **kwargs)
            except TRANSIENT_ERRORS as e:
                if attempt == RETRY_ATTEMPTS - 1:
                    logger.error("%s failed after %d attempts: %s", func.__name__, RETRY_ATTEMPTS, e)
                    raise DatabaseUnavailable()
                logger.warning("%s hit a transient database error (attempt %d): %s", func.__name__, attempt + 1, e)
                await asyncio.sleep(RETRY_DELAY_SECONDS)

    return wrapper


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(db_manager.ensure_indexes())
    print("Indexes ensured")
