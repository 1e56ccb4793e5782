"""
Session State Model - snapshot bất biến của phiên thi
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Tuple

from .answer_record import AnswerRecord
from .progress_view import ProgressView
from .question import Question


class SessionState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    LOCKED = "locked"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Snapshot của phiên thi sau mỗi transition.
    Chỉ SessionController tạo snapshot mới, không sửa trực tiếp.
    """
    user_id: str
    state: SessionState = SessionState.LOADING
    index: int = 0
    input_buffer: str = ""
    questions: Tuple[Question, ...] = ()
    records: Tuple[AnswerRecord, ...] = ()
    progress: Optional[ProgressView] = None
    question_started_at: Optional[datetime] = None
    # question_id -> thời điểm user mở câu hỏi lần đầu trong phiên
    question_starts: Mapping[str, datetime] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions or not 0 <= self.index < len(self.questions):
            return None
        return self.questions[self.index]

    @property
    def is_last_question(self) -> bool:
        return bool(self.questions) and self.index == len(self.questions) - 1
