import asyncio
import itertools
import random
from collections import Counter

import pytest

import config
from errors import NotFound
from workflow import exam_assembler
from workflow.exam_assembler import assemble, assemble_exam, build_sequence, shuffle, split_options

from conftest import make_question, seed_bank


def _bank(easy, moderate, hard, bank="Go Backend"):
    docs = []
    for tier, count in (("easy", easy), ("moderate", moderate), ("hard", hard)):
        docs.extend(make_question(bank, f"{tier[0].upper()}{i:03d}", tier) for i in range(count))
    return docs


@pytest.mark.parametrize("counts", [(5, 3, 4), (1, 1, 1), (10, 10, 10), (7, 2, 9), (0, 4, 4), (3, 0, 0)])
def test_exam_length_is_three_times_scarcest_tier(counts):
    exam = assemble(_bank(*counts), random.Random(7))
    assert len(exam) == 3 * min(counts)
    tiers = Counter(q["type"] for q in exam)
    assert tiers["easy"] == tiers["moderate"] == tiers["hard"] == min(counts)


def test_every_triplet_has_one_question_per_tier():
    exam = assemble(_bank(6, 8, 5), random.Random(3))
    for i in range(0, len(exam), 3):
        assert sorted(q["type"] for q in exam[i:i + 3]) == ["easy", "hard", "moderate"]


def test_go_backend_scenario_yields_three_triplets():
    exam = assemble(_bank(5, 3, 4), random.Random(11))
    assert len(exam) == 9
    assert len({q["id"] for q in exam}) == 9


def test_order_within_triplet_covers_every_permutation():
    rng = random.Random(2024)
    seen = Counter()
    for _ in range(600):
        seq = build_sequence(_bank(1, 1, 1), rng)
        seen[tuple(q["questionType"] for q in seq)] += 1
    assert set(seen) == set(itertools.permutations(["easy", "moderate", "hard"]))


def test_shuffle_keeps_elements():
    items = list(range(20))
    shuffle(items, random.Random(1))
    assert sorted(items) == list(range(20))


def test_unknown_tiers_are_ignored():
    docs = _bank(2, 2, 2) + [make_question("Go Backend", "X001", "expert")]
    exam = assemble(docs, random.Random(5))
    assert len(exam) == 6
    assert "X001" not in {q["id"] for q in exam}


def test_exam_question_payload():
    doc = make_question("Go Backend", "GB001", "hard", answer="B")
    doc["options"] = "goroutine ,  channel,mutex"
    easy = make_question("Go Backend", "GB002", "easy")
    moderate = make_question("Go Backend", "GB003", "moderate")

    exam = {q["id"]: q for q in assemble([doc, easy, moderate], random.Random(0), include_answer=True)}

    assert exam["GB001"] == {
        "id": "GB001",
        "question": doc["question"],
        "options": ["goroutine", "channel", "mutex"],
        "answer": "B",
        "time": 2,
        "type": "hard",
    }
    assert exam["GB002"]["time"] == 1
    assert exam["GB003"]["time"] == 1


def test_answers_can_be_withheld(monkeypatch):
    monkeypatch.setattr(config, "EXPOSE_EXAM_ANSWERS", False)
    exam = assemble(_bank(1, 1, 1), random.Random(0))
    assert all("answer" not in q for q in exam)


def test_split_options_handles_empty_values():
    assert split_options(None) == []
    assert split_options("") == []
    assert split_options("Yes,No") == ["Yes", "No"]


def test_empty_bank_is_not_found(fake_db):
    with pytest.raises(NotFound):
        asyncio.run(assemble_exam("Go Backend"))


def test_bank_missing_a_tier_yields_empty_exam(fake_db):
    seed_bank(fake_db, "Go Backend", easy=4, moderate=3, hard=0)
    assert asyncio.run(assemble_exam("Go Backend")) == []


def test_assemble_exam_reads_only_its_bank(fake_db):
    seed_bank(fake_db, "Go Backend", easy=5, moderate=3, hard=4)
    seed_bank(fake_db, "Python Scripting", easy=9, moderate=9, hard=9)
    exam = asyncio.run(assemble_exam("Go Backend", random.Random(9)))
    assert len(exam) == 9
    assert len(fake_db["questions"].docs) == 12 + 27


def test_assembly_does_not_mutate_the_pool(fake_db):
    seed_bank(fake_db, "Go Backend", easy=2, moderate=2, hard=2)
    before = [dict(d) for d in fake_db["questions"].docs]
    asyncio.run(exam_assembler.assemble_exam("Go Backend"))
    assert fake_db["questions"].docs == before


def test_shuffle_uses_given_rng():
    items, expected = list(range(20)), list(range(20))
    shuffle(items, random.Random(7))
    random.Random(7).shuffle(expected)
    assert items == expected
