"""
Competition Store - interface cho các external collaborator
(nguồn câu hỏi, answer log, profile)
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from models.answer_record import AnswerRecord
from models.question import Question
from models.user_identity import UserIdentity


class CompetitionStore(ABC):
    """
    Mọi lỗi I/O phải được raise dưới dạng StoreError.
    """

    @abstractmethod
    def list_questions(self) -> List[Question]:
        """Danh sách câu hỏi theo ordinal tăng dần"""

    @abstractmethod
    def fetch_user_answers(self, user_id: str) -> List[AnswerRecord]:
        """Các câu trả lời của một user, thứ tự không quan trọng"""

    @abstractmethod
    def fetch_answers(self, offset: int, limit: int,
                      only_correct: bool = False) -> List[AnswerRecord]:
        """Đọc một trang answer log (kèm display_name nếu có profile)"""

    @abstractmethod
    def upsert_answer(self, record: AnswerRecord) -> None:
        """Ghi đè theo khóa (user_id, question_id), không tạo bản ghi trùng"""

    @abstractmethod
    def get_identity(self, user_id: str) -> Optional[UserIdentity]:
        """Thông tin user từ identity provider, None nếu không có"""
