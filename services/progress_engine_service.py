"""
Progress Engine Service - xác định câu hỏi đang active và quyền truy cập
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from models.answer_record import AnswerRecord
from models.progress_view import Outcome, ProgressView
from models.question import Question

logger = logging.getLogger(__name__)


class ProgressEngineService:
    """
    Service để tính tiến độ của user từ answer log.
    Tất cả các hàm đều là pure function.
    """

    @staticmethod
    def order_questions(questions: Iterable[Question]) -> List[Question]:
        """
        Sắp xếp câu hỏi theo ordinal tăng dần

        Raises:
            ValueError: Nếu có ordinal bị trùng
        """
        ordered = sorted(questions, key=lambda q: q.ordinal)
        seen = set()
        for position, q in enumerate(ordered, start=1):
            if q.ordinal in seen:
                raise ValueError(f"Ordinal bị trùng: {q.ordinal}")
            seen.add(q.ordinal)
            if q.ordinal != position:
                logger.warning("Question ordinals are not contiguous at %s", q.question_id)
        return ordered

    @staticmethod
    def build_outcomes(records: Iterable[AnswerRecord]) -> Dict[str, Outcome]:
        """
        question_id -> Outcome của lần nộp gần nhất.
        Nếu có nhiều bản ghi cho cùng một câu, lấy bản ghi có answered_at mới nhất.
        """
        outcomes: Dict[str, Outcome] = {}
        for record in records:
            existing = outcomes.get(record.question_id)
            if existing is not None and existing.timestamp > record.answered_at:
                continue
            outcomes[record.question_id] = Outcome(
                answer=record.submitted_answer,
                is_correct=record.is_correct,
                timestamp=record.answered_at,
            )
        return outcomes

    @staticmethod
    def compute_active_index(questions: Sequence[Question],
                             outcomes: Mapping[str, Outcome]) -> Optional[int]:
        """
        Câu active là câu đầu tiên chưa có outcome hoặc outcome sai.
        Nếu tất cả đều đúng thì trả về câu cuối cùng.

        Returns:
            Index (0-based), None nếu danh sách câu hỏi rỗng
        """
        if not questions:
            return None
        for index, q in enumerate(questions):
            outcome = outcomes.get(q.question_id)
            if outcome is None or not outcome.is_correct:
                return index
        return len(questions) - 1

    @staticmethod
    def can_access_index(index: int,
                         questions: Sequence[Question],
                         outcomes: Mapping[str, Outcome]) -> bool:
        """
        Câu 0 luôn truy cập được; câu i > 0 chỉ truy cập được khi câu i-1 đã đúng
        """
        if index == 0:
            return True
        if index < 0 or index >= len(questions):
            return False
        previous = outcomes.get(questions[index - 1].question_id)
        return previous is not None and previous.is_correct

    @staticmethod
    def nearest_accessible_index(index: int,
                                 questions: Sequence[Question],
                                 outcomes: Mapping[str, Outcome]) -> int:
        """Lùi dần từ index cho tới câu đầu tiên truy cập được"""
        candidate = min(index, len(questions) - 1)
        while candidate > 0 and not ProgressEngineService.can_access_index(
                candidate, questions, outcomes):
            candidate -= 1
        return max(candidate, 0)

    @staticmethod
    def build_progress_view(questions: Sequence[Question],
                            records: Iterable[AnswerRecord]) -> ProgressView:
        """
        Tạo ProgressView từ danh sách câu hỏi (đã sắp xếp) và answer log của user

        Args:
            questions: Câu hỏi theo ordinal
            records: Các AnswerRecord của user

        Returns:
            ProgressView
        """
        question_ids = {q.question_id for q in questions}
        outcomes = {
            question_id: outcome
            for question_id, outcome in ProgressEngineService.build_outcomes(records).items()
            if question_id in question_ids
        }
        completed = frozenset(
            question_id for question_id, outcome in outcomes.items() if outcome.is_correct
        )
        return ProgressView(
            active_index=ProgressEngineService.compute_active_index(questions, outcomes),
            total_questions=len(questions),
            outcomes=outcomes,
            completed_question_ids=completed,
        )
