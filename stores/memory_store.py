"""
In-memory Competition Store
"""

import threading
from typing import Dict, Iterable, List, Optional, Tuple
from models.answer_record import AnswerRecord
from models.errors import StoreError
from models.question import Question
from models.user_identity import UserIdentity
from stores.base_store import CompetitionStore


class InMemoryCompetitionStore(CompetitionStore):
    """Store lưu trong bộ nhớ, upsert nguyên tử theo từng khóa"""

    def __init__(self,
                 questions: Iterable[Question] = (),
                 records: Iterable[AnswerRecord] = (),
                 identities: Iterable[UserIdentity] = ()):
        self._lock = threading.Lock()
        self._questions: Dict[str, Question] = {q.question_id: q for q in questions}
        self._records: Dict[Tuple[str, str], AnswerRecord] = {}
        self._identities: Dict[str, UserIdentity] = {i.user_id: i for i in identities}
        for record in records:
            self._records[record.key] = record

    def add_question(self, question: Question) -> None:
        with self._lock:
            self._questions[question.question_id] = question

    def set_identity(self, identity: UserIdentity) -> None:
        with self._lock:
            self._identities[identity.user_id] = identity

    def list_questions(self) -> List[Question]:
        with self._lock:
            return sorted(self._questions.values(), key=lambda q: q.ordinal)

    def fetch_user_answers(self, user_id: str) -> List[AnswerRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.user_id == user_id]

    def fetch_answers(self, offset: int, limit: int,
                      only_correct: bool = False) -> List[AnswerRecord]:
        with self._lock:
            records = [
                r for r in self._records.values()
                if r.is_correct or not only_correct
            ]
            page = records[offset:offset + limit]
            return [self._with_display_name(r) for r in page]

    def upsert_answer(self, record: AnswerRecord) -> None:
        with self._lock:
            previous = self._records.get(record.key)
            self._records[record.key] = record
        try:
            self._after_write()
        except StoreError:
            with self._lock:
                if previous is None:
                    self._records.pop(record.key, None)
                else:
                    self._records[record.key] = previous
            raise

    def get_identity(self, user_id: str) -> Optional[UserIdentity]:
        with self._lock:
            return self._identities.get(user_id)

    def all_records(self) -> List[AnswerRecord]:
        with self._lock:
            return list(self._records.values())

    def all_identities(self) -> List[UserIdentity]:
        with self._lock:
            return list(self._identities.values())

    def _with_display_name(self, record: AnswerRecord) -> AnswerRecord:
        identity = self._identities.get(record.user_id)
        if identity is None or identity.display_name is None:
            return record
        return AnswerRecord(
            user_id=record.user_id,
            question_id=record.question_id,
            submitted_answer=record.submitted_answer,
            is_correct=record.is_correct,
            time_taken_seconds=record.time_taken_seconds,
            answered_at=record.answered_at,
            display_name=identity.display_name,
        )

    def _after_write(self) -> None:
        """Hook cho các store con cần persist sau khi ghi"""
