"""
Question Model
"""

from dataclasses import dataclass

@dataclass(frozen=True)
class Question:
    """Câu hỏi của cuộc thi (chỉ đọc)"""
    question_id: str
    ordinal: int
    prompt: str
    correct_answer: str

    def is_correct_answer(self, submitted_answer: str) -> bool:
        """So khớp chính xác, không chấm điểm một phần"""
        return submitted_answer.strip() == self.correct_answer
