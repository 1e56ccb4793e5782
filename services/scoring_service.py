"""
Scoring Service - tổng hợp answer log thành bảng xếp hạng
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple
from models.answer_record import AnswerRecord
from models.errors import LeaderboardFetchFailure, RetryCancelled, StoreError
from models.leaderboard_entry import LeaderboardEntry
from models.user_identity import ANONYMOUS_NAME
from services.answer_log_loader_service import AnswerLogLoaderService, DEFAULT_PAGE_SIZE
from services.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_LIMIT = 10


@dataclass
class _UserScore:
    name: str
    correct: int = 0
    total_time: int = 0
    reached_at: Optional[datetime] = None
    question_ids: Set[str] = field(default_factory=set)


class ScoringService:
    """
    Service để tính điểm và xếp hạng người chơi
    """

    @staticmethod
    def compute_leaderboard(answers: Iterable[AnswerRecord],
                            total_question_count: int,
                            limit: int = DEFAULT_LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
        """
        Tính bảng xếp hạng từ answer log

        - Chỉ tính các bản ghi đúng
        - Mỗi câu hỏi chỉ tính một lần cho mỗi user (lấy bản ghi đúng sớm nhất)
        - Sắp xếp: điểm giảm dần, tổng thời gian tăng dần,
          sau đó ai đạt mức điểm đó sớm hơn xếp trên, cuối cùng theo user_id
        - Rank theo vị trí (1-based), không đồng hạng

        Args:
            answers: Các AnswerRecord (có thể gồm nhiều trang đã ghép)
            total_question_count: Tổng số câu hỏi của cuộc thi
            limit: Số dòng tối đa

        Returns:
            Danh sách LeaderboardEntry đã xếp hạng
        """
        if total_question_count <= 0:
            raise ValueError("total_question_count phải > 0")

        correct_answers = sorted(
            (a for a in answers if a.is_correct),
            key=lambda a: a.answered_at,
        )

        user_scores: Dict[str, _UserScore] = {}
        for answer in correct_answers:
            score = user_scores.get(answer.user_id)
            if score is None:
                score = _UserScore(name=answer.display_name or ANONYMOUS_NAME)
                user_scores[answer.user_id] = score

            if answer.question_id in score.question_ids:
                continue
            score.question_ids.add(answer.question_id)
            score.correct += 1
            score.total_time += answer.time_taken_seconds
            score.reached_at = answer.answered_at

        ranked = sorted(
            user_scores.items(),
            key=lambda item: (
                -(item[1].correct / total_question_count),
                item[1].total_time,
                item[1].reached_at,
                item[0],
            ),
        )[:limit]

        return [
            LeaderboardEntry(
                rank=position + 1,
                user_id=user_id,
                display_name=score.name,
                total_score_percent=score.correct * 100 / total_question_count,
                total_time_seconds=score.total_time,
                correct_count=score.correct,
            )
            for position, (user_id, score) in enumerate(ranked)
        ]


class LeaderboardLoader:
    """
    Tải bảng xếp hạng từ store với retry policy.
    Gọi close() khi không còn cần kết quả để dừng các lần retry đang chờ.
    """

    def __init__(self, store,
                 retry_policy: Optional[RetryPolicy] = None,
                 page_size: int = DEFAULT_PAGE_SIZE,
                 limit: int = DEFAULT_LEADERBOARD_LIMIT):
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.page_size = page_size
        self.limit = limit
        self._cancel_event = threading.Event()
        # Số câu hỏi dùng để tính điểm ở lần load thành công gần nhất
        self.total_questions: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self._cancel_event.is_set()

    def close(self) -> None:
        self._cancel_event.set()

    def _load_once(self) -> Tuple[int, List[LeaderboardEntry]]:
        total_question_count = len(self.store.list_questions())
        if total_question_count == 0:
            return 0, []
        answers = AnswerLogLoaderService.fetch_all_answers(
            self.store, only_correct=True, page_size=self.page_size,
        )
        entries = ScoringService.compute_leaderboard(answers, total_question_count, self.limit)
        return total_question_count, entries

    def load(self) -> List[LeaderboardEntry]:
        """
        Raises:
            LeaderboardFetchFailure: Khi vẫn lỗi sau khi đã retry
            RetryCancelled: Khi loader đã bị close
        """
        try:
            total_question_count, entries = self.retry_policy.run(
                self._load_once,
                cancel_event=self._cancel_event,
                description="leaderboard load",
            )
        except RetryCancelled:
            logger.info("Leaderboard load cancelled")
            raise
        except StoreError as e:
            raise LeaderboardFetchFailure(
                f"Failed to load leaderboard data: {e}"
            ) from e
        self.total_questions = total_question_count
        logger.info("Loaded leaderboard with %d entries", len(entries))
        return entries
