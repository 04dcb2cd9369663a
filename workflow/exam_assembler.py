"""
Exam Assembler.
Builds a randomized, difficulty-balanced question sequence for one candidate session.
"""

import logging
import random
from typing import Any, Dict, List, Optional, Sequence

import config
from db_manager import db_manager, with_db_retry, QUESTIONS
from db_schema import TIERS
from errors import NotFound


logger = logging.getLogger(__name__)

TIME_ALLOWANCE = {"easy": 1, "moderate": 1, "hard": 2}

_system_random = random.SystemRandom()


def shuffle(items: List[Any], rng: Optional[random.Random] = None) -> None:
    """In-place uniform shuffle, from the OS entropy source unless a seeded rng is given."""
    (rng or _system_random).shuffle(items)


def partition_by_tier(questions: Sequence[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    buckets = {tier: [] for tier in TIERS}
    for q in questions:
        tier = (q.get("questionType") or "").strip().lower()
        if tier in buckets:
            buckets[tier].append(q)
    return buckets


def build_sequence(questions: Sequence[Dict[str, Any]], rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """
    Pack shuffled easy/moderate/hard triplets.

    The exam is bounded by the scarcest tier: surplus questions in the other
    tiers are dropped so the easy:moderate:hard ratio is always 1:1:1.
    """
    buckets = partition_by_tier(questions)
    for tier in TIERS:
        shuffle(buckets[tier], rng)

    count = min(len(buckets[tier]) for tier in TIERS)
    sequence = []
    for i in range(count):
        triplet = [buckets[tier][i] for tier in TIERS]
        shuffle(triplet, rng)
        sequence.extend(triplet)
    return sequence


def split_options(options: Optional[str]) -> List[str]:
    if not options:
        return []
    return [item.strip() for item in options.split(",")]


def to_exam_question(doc: Dict[str, Any], include_answer: bool = True) -> Dict[str, Any]:
    tier = doc.get("questionType")
    item = {
        "id": doc.get("questionId"),
        "question": doc.get("question"),
        "options": split_options(doc.get("options")),
        "time": TIME_ALLOWANCE.get(tier, 1),
        "type": tier,
    }
    if include_answer:
        item["answer"] = doc.get("correctAnswer")
    return item


def assemble(questions: Sequence[Dict[str, Any]], rng: Optional[random.Random] = None,
             include_answer: Optional[bool] = None) -> List[Dict[str, Any]]:
    """Turn a bank's raw question documents into an ordered exam."""
    if include_answer is None:
        include_answer = config.EXPOSE_EXAM_ANSWERS
    return [to_exam_question(q, include_answer) for q in build_sequence(questions, rng)]


@with_db_retry
async def load_bank(bank_name: str) -> List[Dict[str, Any]]:
    questions = await db_manager.get_collection(QUESTIONS)
    return await questions.find({"questionBankName": bank_name}).to_list(length=None)


async def assemble_exam(bank_name: str, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """Assemble an exam for a bank; an empty bank is NotFound, never an empty exam."""
    docs = await load_bank(bank_name)
    if not docs:
        raise NotFound(f"Question bank '{bank_name}' not found or is empty.")
    exam = assemble(docs, rng)
    logger.info("Assembled %d questions from bank '%s' (%d in pool)", len(exam), bank_name, len(docs))
    return exam
