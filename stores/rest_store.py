"""
REST Competition Store - đọc/ghi qua REST API kiểu PostgREST (Supabase)
"""

import logging
from typing import Callable, Dict, List, Optional, TypeVar
import requests
from models.answer_record import AnswerRecord
from models.errors import StoreError
from models.question import Question
from models.user_identity import UserIdentity
from services.answer_log_loader_service import AnswerLogLoaderService
from stores.base_store import CompetitionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RestCompetitionStore(CompetitionStore):
    """
    Các bảng sử dụng:
    - questions(id, question_number, question_text, correct_answer)
    - user_answers(user_id, question_id, user_answer, is_correct, time_taken_seconds, answered_at)
      với unique key (user_id, question_id)
    - profiles(user_id, display_name, email)
    """

    def __init__(self, base_url: str, api_key: str = "",
                 timeout: float = 60, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers.update({
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            })

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _get(self, table: str, params: Dict) -> List[Dict]:
        try:
            response = self.session.get(self._url(table), params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("Error reading %s: %s", table, e)
            raise StoreError(f"Lỗi khi đọc {table}: {e}") from e

    @staticmethod
    def _decode(table: str, rows, decode: Callable[[Dict], T]) -> List[T]:
        """Row lỗi format (thiếu field, timestamp sai) cũng là lỗi store"""
        try:
            return [decode(row) for row in rows]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Malformed row in %s: %s", table, e)
            raise StoreError(f"Dữ liệu {table} không hợp lệ: {e!r}") from e

    def list_questions(self) -> List[Question]:
        rows = self._get("questions", {
            "select": "id,question_number,question_text,correct_answer",
            "order": "question_number.asc",
        })
        return self._decode("questions", rows, AnswerLogLoaderService.question_from_row)

    def fetch_user_answers(self, user_id: str) -> List[AnswerRecord]:
        rows = self._get("user_answers", {
            "select": "question_id,user_answer,is_correct,time_taken_seconds,answered_at",
            "user_id": f"eq.{user_id}",
        })
        return self._decode(
            "user_answers", rows,
            lambda row: AnswerLogLoaderService.record_from_row(row, user_id=user_id),
        )

    def fetch_answers(self, offset: int, limit: int,
                      only_correct: bool = False) -> List[AnswerRecord]:
        params = {
            "select": ("user_id,question_id,user_answer,is_correct,"
                       "time_taken_seconds,answered_at,profiles!inner(display_name)"),
            "order": "answered_at.asc",
            "offset": offset,
            "limit": limit,
        }
        if only_correct:
            params["is_correct"] = "eq.true"
        rows = self._get("user_answers", params)
        return self._decode("user_answers", rows, AnswerLogLoaderService.record_from_row)

    def upsert_answer(self, record: AnswerRecord) -> None:
        try:
            response = self.session.post(
                self._url("user_answers"),
                params={"on_conflict": "user_id,question_id"},
                json=AnswerLogLoaderService.record_to_row(record),
                headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("Error saving answer for user %s: %s", record.user_id, e)
            raise StoreError(f"Lỗi khi lưu câu trả lời: {e}") from e

    def get_identity(self, user_id: str) -> Optional[UserIdentity]:
        rows = self._get("profiles", {
            "select": "user_id,display_name,email",
            "user_id": f"eq.{user_id}",
            "limit": 1,
        })
        if not rows:
            return None
        row = rows[0]
        return UserIdentity(
            user_id=str(row.get('user_id', user_id)),
            display_name=row.get('display_name'),
            email=row.get('email'),
        )
