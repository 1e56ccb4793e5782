import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models.answer_record import AnswerRecord
from models.errors import StoreError
from models.question import Question
from models.user_identity import UserIdentity
from stores.memory_store import InMemoryCompetitionStore


BASE_TIME = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)

MORSE_QUESTIONS = [
    ("q1", 1, "Encode E", "."),
    ("q2", 2, "Encode T", "-"),
    ("q3", 3, "Encode A", ".-"),
    ("q4", 4, "Encode N", "-."),
    ("q5", 5, "Encode SOS", "...---..."),
]


class FakeClock:
    def __init__(self, start=BASE_TIME):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


class FlakyStore(InMemoryCompetitionStore):
    """In-memory store whose reads/writes can be told to fail."""

    def __init__(self, *args, fail_reads=0, fail_pages_after=None, fail_writes=0,
                 fail_question_reads=0, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_question_reads = fail_question_reads
        self.question_read_calls = 0
        self.fail_reads = fail_reads
        self.fail_pages_after = fail_pages_after
        self.fail_writes = fail_writes
        self.read_calls = 0
        self.write_calls = 0

    def list_questions(self):
        self.question_read_calls += 1
        if self.fail_question_reads > 0:
            self.fail_question_reads -= 1
            raise StoreError("transient")
        return super().list_questions()

    def fetch_answers(self, offset, limit, only_correct=False):
        self.read_calls += 1
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise StoreError("connection reset")
        if self.fail_pages_after is not None and offset >= self.fail_pages_after:
            raise StoreError("timeout on later page")
        return super().fetch_answers(offset, limit, only_correct)

    def upsert_answer(self, record):
        self.write_calls += 1
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise StoreError("write rejected")
        super().upsert_answer(record)


def make_record(user_id, question_id, is_correct=True, seconds=10, minutes=0,
                answer=None, display_name=None):
    return AnswerRecord(
        user_id=user_id,
        question_id=question_id,
        submitted_answer=answer if answer is not None else ("." if is_correct else "x"),
        is_correct=is_correct,
        time_taken_seconds=seconds,
        answered_at=BASE_TIME + timedelta(minutes=minutes),
        display_name=display_name,
    )


@pytest.fixture
def questions():
    return [Question(qid, ordinal, prompt, answer) for qid, ordinal, prompt, answer in MORSE_QUESTIONS]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(questions):
    return FlakyStore(
        questions=questions,
        identities=[
            UserIdentity("alice", display_name="Alice", email="alice@example.com"),
            UserIdentity("bob", email="bob@example.com"),
        ],
    )
