"""
Answer Log Loader Service - chuyển đổi row <-> model và đọc answer log theo trang
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from models.answer_record import AnswerRecord
from models.question import Question
from models.errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def parse_timestamp(value) -> datetime:
    """ISO string / epoch milliseconds / datetime -> datetime (UTC)"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Timestamp không hợp lệ: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AnswerLogLoaderService:
    """
    Service để load câu hỏi / câu trả lời từ dữ liệu dạng row (JSON, REST)
    """

    @staticmethod
    def question_from_row(row: Dict) -> Question:
        return Question(
            question_id=str(row['id']),
            ordinal=int(row['question_number']),
            prompt=row.get('question_text', ''),
            correct_answer=row['correct_answer'],
        )

    @staticmethod
    def question_to_row(question: Question) -> Dict:
        return {
            'id': question.question_id,
            'question_number': question.ordinal,
            'question_text': question.prompt,
            'correct_answer': question.correct_answer,
        }

    @staticmethod
    def record_from_row(row: Dict, user_id: Optional[str] = None) -> AnswerRecord:
        """
        Chuyển một row của bảng user_answers thành AnswerRecord

        Args:
            row: Row dữ liệu (có thể kèm profiles.display_name nếu đã join)
            user_id: Dùng khi row không chứa user_id (đọc theo filter user)

        Returns:
            AnswerRecord
        """
        profile = row.get('profiles') or {}
        return AnswerRecord(
            user_id=str(row.get('user_id', user_id or '')),
            question_id=str(row['question_id']),
            submitted_answer=row.get('user_answer', ''),
            is_correct=bool(row.get('is_correct', False)),
            time_taken_seconds=int(row.get('time_taken_seconds') or 0),
            answered_at=parse_timestamp(row.get('answered_at')),
            display_name=profile.get('display_name') or row.get('display_name'),
        )

    @staticmethod
    def record_to_row(record: AnswerRecord) -> Dict:
        return {
            'user_id': record.user_id,
            'question_id': record.question_id,
            'user_answer': record.submitted_answer,
            'is_correct': record.is_correct,
            'time_taken_seconds': record.time_taken_seconds,
            'answered_at': record.answered_at.isoformat(),
        }

    @staticmethod
    def fetch_all_answers(store,
                          only_correct: bool = False,
                          page_size: int = DEFAULT_PAGE_SIZE,
                          total_limit: Optional[int] = None) -> List[AnswerRecord]:
        """
        Lấy toàn bộ answer log với pagination

        Lỗi ở trang đầu tiên được raise (chưa có dữ liệu nào);
        lỗi ở các trang sau thì dừng và dùng phần dữ liệu đã lấy được.

        Args:
            store: CompetitionStore
            only_correct: Chỉ lấy các bản ghi is_correct = true
            page_size: Số bản ghi mỗi lần
            total_limit: Tổng số bản ghi tối đa (None = không giới hạn)

        Returns:
            Danh sách AnswerRecord đã ghép từ các trang
        """
        if page_size < 1:
            raise ValueError("page_size phải >= 1")

        all_records: List[AnswerRecord] = []
        offset = 0

        while total_limit is None or len(all_records) < total_limit:
            current_limit = page_size
            if total_limit is not None:
                current_limit = min(page_size, total_limit - len(all_records))

            try:
                batch = store.fetch_answers(offset=offset, limit=current_limit,
                                            only_correct=only_correct)
            except StoreError as e:
                if offset == 0:
                    raise
                logger.warning(
                    "Error fetching answer batch at offset %d, proceeding with %d records: %s",
                    offset, len(all_records), e,
                )
                break

            if not batch:
                break

            all_records.extend(batch)
            logger.debug("Fetched %d answer records so far", len(all_records))

            # Trang ngắn hơn limit => đã hết dữ liệu
            if len(batch) < current_limit:
                break

            offset += len(batch)

        return all_records
