import copy
import re
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import pymongo.errors
from bson import ObjectId
from pymongo import ReturnDocument


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import db_manager as db_module  # noqa: E402
from middleware.auth_utils import hash_password  # noqa: E402
from workflow.email_notifications import email_workflow as email_module  # noqa: E402


def _matches_value(actual, expected):
    if isinstance(expected, dict) and any(k.startswith("$") for k in expected):
        for op, arg in expected.items():
            if op == "$in":
                if actual not in arg:
                    return False
            elif op == "$regex":
                if not isinstance(actual, str) or not re.search(arg, actual):
                    return False
            elif op == "$exists":
                if (actual is not None) != arg:
                    return False
            else:
                raise NotImplementedError(op)
        return True
    if isinstance(actual, list) and not isinstance(expected, list):
        return expected in actual
    return actual == expected


def matches(doc, query):
    for key, expected in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in expected):
                return False
        elif not _matches_value(doc.get(key), expected):
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """In-memory stand-in for a Motor collection. Each call runs without yielding, like one server op."""

    def __init__(self, unique=()):
        self.docs = []
        self.unique = set(unique) | {"_id"}
        self.indexes = []

    def _check_unique(self, doc, ignore=None):
        for field in self.unique:
            if field not in doc:
                continue
            for other in self.docs:
                if other is not ignore and other.get(field) == doc[field]:
                    raise pymongo.errors.DuplicateKeyError(f"E11000 duplicate key: {field}")

    def _find(self, query):
        return [d for d in self.docs if matches(d, query)]

    async def create_index(self, keys, unique=False, **kwargs):
        self.indexes.append((keys, unique))
        if unique and isinstance(keys, str):
            self.unique.add(keys)
        return keys

    async def find_one(self, query=None):
        found = self._find(query or {})
        return copy.deepcopy(found[0]) if found else None

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(d) for d in self._find(query or {})])

    async def count_documents(self, query):
        return len(self._find(query))

    async def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def _apply(self, doc, update, inserting):
        for op, fields in update.items():
            for key, value in fields.items():
                if op == "$set":
                    doc[key] = value
                elif op == "$inc":
                    doc[key] = doc.get(key, 0) + value
                elif op == "$setOnInsert":
                    if inserting:
                        doc[key] = value
                elif op == "$addToSet":
                    items = doc.setdefault(key, [])
                    if value not in items:
                        items.append(value)
                else:
                    raise NotImplementedError(op)

    def _upsert(self, query, update):
        doc = {k: v for k, v in query.items() if not k.startswith("$") and not isinstance(v, dict)}
        doc.setdefault("_id", ObjectId())
        self._apply(doc, update, inserting=True)
        self._check_unique(doc)
        self.docs.append(doc)
        return doc

    async def update_one(self, query, update, upsert=False):
        found = self._find(query)
        if found:
            candidate = copy.deepcopy(found[0])
            self._apply(candidate, update, inserting=False)
            self._check_unique(candidate, ignore=found[0])
            found[0].clear()
            found[0].update(candidate)
            return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            doc = self._upsert(query, update)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def find_one_and_update(self, query, update, upsert=False, return_document=ReturnDocument.BEFORE):
        found = self._find(query)
        if found:
            before = copy.deepcopy(found[0])
            self._apply(found[0], update, inserting=False)
            return copy.deepcopy(found[0]) if return_document == ReturnDocument.AFTER else before
        if upsert:
            doc = self._upsert(query, update)
            return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else None
        return None

    async def delete_one(self, query):
        found = self._find(query)
        if found:
            self.docs.remove(found[0])
        return SimpleNamespace(deleted_count=len(found[:1]))


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        for name, fields in db_module.UNIQUE_INDEXES.items():
            self.collections[name] = FakeCollection(unique=fields)

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection()
        return self.collections[name]

    async def get_collection(self, name):
        return self[name]


class RecordingSender:
    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    async def send_email(self, to_email, subject, html):
        self.sent.append({"to": to_email, "subject": subject, "html": html})
        return self.ok


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDatabase()
    monkeypatch.setattr(db_module.db_manager, "get_collection", db.get_collection)
    monkeypatch.setattr(db_module, "RETRY_DELAY_SECONDS", 0)
    return db


@pytest.fixture
def mailer(monkeypatch):
    sender = RecordingSender()
    monkeypatch.setattr(email_module.email_workflow, "sender", sender)
    return sender


def make_question(bank, question_id, tier, answer="A"):
    return {
        "_id": ObjectId(),
        "questionBankName": bank,
        "questionId": question_id,
        "question": f"Question {question_id}?",
        "referenceUrls": [],
        "options": "A, B, C, D",
        "questionType": tier,
        "correctAnswer": answer,
    }


def seed_bank(db, bank, easy=0, moderate=0, hard=0):
    n = 0
    for tier, count in (("easy", easy), ("moderate", moderate), ("hard", hard)):
        for _ in range(count):
            n += 1
            db["questions"].docs.append(make_question(bank, f"Q{n:03d}", tier))


@pytest.fixture(scope="session")
def candidate_password_hash():
    return hash_password("secret12")


@pytest.fixture
def candidate(fake_db, candidate_password_hash):
    doc = {
        "_id": ObjectId(),
        "onboardedByTaName": "Riya Sharma",
        "onboardedByTaEmail": "riya@example.com",
        "firstName": "Asha",
        "lastName": "Verma",
        "email": "asha@example.com",
        "contactNumber": None,
        "program": "Go",
        "project": "Backend",
        "username": "asha@example.com",
        "password": candidate_password_hash,
        "status": "Mail Sent",
        "result": "",
        "score": "",
        "videoLink": "",
    }
    fake_db["candidates"].docs.append(doc)
    return doc


@pytest.fixture
def test_taker_claims(candidate):
    return {
        "id": str(candidate["_id"]),
        "username": candidate["username"],
        "questionBankName": "Go Backend",
        "scope": "test-taker",
    }
