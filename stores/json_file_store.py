"""
JSON file Competition Store

Format file:
{
  "questions": [{"id", "question_number", "question_text", "correct_answer"}],
  "answers": [{"user_id", "question_id", "user_answer", "is_correct",
               "time_taken_seconds", "answered_at"}],
  "profiles": [{"user_id", "display_name", "email"}]
}
"""

import json
import logging
import os
from models.errors import StoreError
from models.user_identity import UserIdentity
from services.answer_log_loader_service import AnswerLogLoaderService
from stores.memory_store import InMemoryCompetitionStore

logger = logging.getLogger(__name__)


class JsonFileCompetitionStore(InMemoryCompetitionStore):
    """Load toàn bộ dữ liệu từ file JSON, ghi lại file sau mỗi upsert"""

    def __init__(self, path: str):
        self.path = path
        data = self._read_file(path)
        try:
            questions = [AnswerLogLoaderService.question_from_row(row)
                         for row in data.get('questions', [])]
            records = [AnswerLogLoaderService.record_from_row(row)
                       for row in data.get('answers', [])]
            identities = [
                UserIdentity(
                    user_id=str(row['user_id']),
                    display_name=row.get('display_name'),
                    email=row.get('email'),
                )
                for row in data.get('profiles', [])
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StoreError(f"Dữ liệu trong file {path} không hợp lệ: {e!r}") from e
        super().__init__(questions=questions, records=records, identities=identities)
        logger.info("Loaded %d questions, %d answers from %s",
                    len(questions), len(records), path)

    @staticmethod
    def _read_file(path: str) -> dict:
        if not os.path.exists(path):
            raise StoreError(f"File không tồn tại: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Không đọc được file {path}: {e}") from e

    def _after_write(self) -> None:
        data = {
            'questions': [AnswerLogLoaderService.question_to_row(q)
                          for q in self.list_questions()],
            'answers': [AnswerLogLoaderService.record_to_row(r)
                        for r in self.all_records()],
            'profiles': [
                {'user_id': i.user_id, 'display_name': i.display_name, 'email': i.email}
                for i in self.all_identities()
            ],
        }
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Không ghi được file {self.path}: {e}") from e
