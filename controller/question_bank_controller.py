"""
Controller for the question bank.
Each bank is a named pool of questions; ids are bank prefix + zero-padded sequence.
"""

import logging
import re
from typing import Any, Dict, List

import pymongo.errors
from pymongo import ReturnDocument

from db_manager import db_manager, with_db_retry, QUESTIONS, COUNTERS
from db_schema import QuestionBankItem, normalize_tier, public_view, reference_urls
from errors import Conflict, NotFound, ValidationError


logger = logging.getLogger(__name__)

ID_DIGITS = 3


def bank_prefix(bank_name: str) -> str:
    """First-word initial + last-word initial, e.g. "Python Scripting" -> "PS"."""
    parts = bank_name.split()
    if not parts:
        return ""
    prefix = parts[0][0]
    if len(parts) > 1:
        prefix += parts[-1][0]
    return prefix.upper()


def format_question_id(bank_name: str, sequence: int) -> str:
    return f"{bank_prefix(bank_name)}{sequence:0{ID_DIGITS}d}"


def _counter_key(prefix: str) -> str:
    return f"questions:{prefix}"


def _question_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    text = (data.get("question") or "").strip()
    if not text:
        raise ValidationError("Question text is required")
    return {
        "question": text,
        "referenceUrls": reference_urls(data.get("ref1"), data.get("ref2"), data.get("ref3"), data.get("ref4")),
        "options": data.get("options") or "",
        "questionType": normalize_tier(data.get("type")),
        "correctAnswer": data.get("answer") or "",
    }


@with_db_retry
async def list_by_bank(bank_name: str) -> List[Dict[str, Any]]:
    questions = await db_manager.get_collection(QUESTIONS)
    docs = await questions.find({"questionBankName": bank_name}).to_list(length=None)
    return [public_view(d) for d in docs]


@with_db_retry
async def next_sequence(bank_name: str) -> int:
    """
    Atomically reserve the next sequence number for a bank's id prefix.

    Banks sharing initials ("Python Scripting", "Perl Scripting") share one
    counter, since question ids are unique across banks. The counter starts from
    the number of ids already issued with the prefix. Numbers are never reused.
    """
    prefix = bank_prefix(bank_name)
    counters = await db_manager.get_collection(COUNTERS)
    key = _counter_key(prefix)

    if await counters.find_one({"_id": key}) is None:
        questions = await db_manager.get_collection(QUESTIONS)
        existing = await questions.count_documents({"questionId": {"$regex": f"^{re.escape(prefix)}\\d+$"}})
        try:
            await counters.update_one({"_id": key}, {"$setOnInsert": {"seq": existing}}, upsert=True)
        except pymongo.errors.DuplicateKeyError:
            pass  # another request seeded it first

    counter = await counters.find_one_and_update(
        {"_id": key},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]


async def next_question_id(bank_name: str) -> str:
    return format_question_id(bank_name, await next_sequence(bank_name))


async def add_question(bank_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    if not bank_prefix(bank_name):
        raise ValidationError("Question bank name is required")
    fields = _question_fields(data)
    question_id = await next_question_id(bank_name)
    item = QuestionBankItem(questionBankName=bank_name, questionId=question_id, **fields)
    await _insert_question(item.model_dump())
    logger.info("Added question %s to bank '%s'", question_id, bank_name)
    return {"success": True, "message": "Question added successfully!", "questionId": question_id}


@with_db_retry
async def _insert_question(doc: Dict[str, Any]):
    questions = await db_manager.get_collection(QUESTIONS)
    try:
        await questions.insert_one(doc)
    except pymongo.errors.DuplicateKeyError:
        raise Conflict(f"Question ID {doc['questionId']} already exists.")


@with_db_retry
async def update_question(bank_name: str, question_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    fields = _question_fields(data)
    questions = await db_manager.get_collection(QUESTIONS)
    updated = await questions.find_one_and_update(
        {"questionBankName": bank_name, "questionId": question_id},
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFound("Question ID not found.")
    logger.info("Updated question %s in bank '%s'", question_id, bank_name)
    return {"success": True, "message": "Question updated successfully!"}


@with_db_retry
async def delete_question(bank_name: str, question_id: str) -> Dict[str, Any]:
    questions = await db_manager.get_collection(QUESTIONS)
    result = await questions.delete_one({"questionBankName": bank_name, "questionId": question_id})
    if result.deleted_count == 0:
        raise NotFound("Question ID not found.")
    logger.info("Deleted question %s from bank '%s'", question_id, bank_name)
    return {"success": True, "message": "Question deleted successfully!"}

