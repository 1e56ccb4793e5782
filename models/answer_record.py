"""
AnswerRecord Model
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class AnswerRecord:
    """
    Một bản ghi câu trả lời trong answer log.
    Mỗi cặp (user_id, question_id) chỉ có một bản ghi logic (upsert).
    """
    user_id: str
    question_id: str
    submitted_answer: str
    is_correct: bool
    time_taken_seconds: int
    answered_at: datetime
    display_name: Optional[str] = None

    @property
    def key(self):
        return (self.user_id, self.question_id)
