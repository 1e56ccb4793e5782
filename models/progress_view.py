"""
Progress View Model - projection của answer log, không lưu trữ
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Mapping, Optional

@dataclass(frozen=True)
class Outcome:
    """Kết quả lần nộp gần nhất cho một câu hỏi"""
    answer: str
    is_correct: bool
    timestamp: datetime


@dataclass(frozen=True)
class ProgressView:
    """
    Trạng thái tiến độ của một user.

    - active_index: câu đầu tiên chưa trả lời đúng (hoặc câu cuối nếu đã đúng hết),
      None nếu không có câu hỏi nào
    - outcomes: question_id -> Outcome
    - completed_question_ids: các câu đã trả lời đúng
    """
    active_index: Optional[int]
    total_questions: int
    outcomes: Mapping[str, Outcome] = field(default_factory=dict)
    completed_question_ids: FrozenSet[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return self.total_questions == 0

    @property
    def is_completed(self) -> bool:
        return not self.is_empty and len(self.completed_question_ids) == self.total_questions

    @property
    def completed_count(self) -> int:
        return len(self.completed_question_ids)

    @property
    def progress_percent(self) -> float:
        if self.is_empty:
            return 0.0
        return self.completed_count / self.total_questions * 100
