"""
Shared utilities, config và dependencies cho tất cả API routes
"""

import logging
import os
import threading
import uuid
from typing import Dict, Optional
from models.errors import (
    FetchFailure,
    InvalidTransition,
    LeaderboardFetchFailure,
    QuizError,
    RetryCancelled,
    StoreError,
    SubmitPersistFailure,
    ValidationFailure,
)
from models.progress_view import ProgressView
from models.session_state import SessionSnapshot, SessionState
from services.retry_policy import RetryPolicy
from services.scoring_service import LeaderboardLoader
from services.session_controller_service import SessionController
from stores.base_store import CompetitionStore
from stores.json_file_store import JsonFileCompetitionStore
from stores.memory_store import InMemoryCompetitionStore
from stores.rest_store import RestCompetitionStore
from api.schemas import (
    OutcomeResponse,
    ProgressResponse,
    QuestionResponse,
    SessionResponse,
)

logger = logging.getLogger(__name__)

# Config
STORE_BACKEND = os.getenv("QUIZ_STORE_BACKEND", "json")
DATA_FILE = os.getenv("QUIZ_DATA_FILE", "competition_data.json")
REST_URL = os.getenv("QUIZ_REST_URL", "")
REST_API_KEY = os.getenv("QUIZ_REST_API_KEY", "")
REST_TIMEOUT = float(os.getenv("QUIZ_REST_TIMEOUT", "60"))
LEADERBOARD_PAGE_SIZE = int(os.getenv("LEADERBOARD_PAGE_SIZE", "100"))
LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "10"))
LEADERBOARD_MAX_RETRIES = int(os.getenv("LEADERBOARD_MAX_RETRIES", "3"))
LEADERBOARD_BASE_DELAY = float(os.getenv("LEADERBOARD_BASE_DELAY", "1.0"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Cache variables
_store_cache: Optional[CompetitionStore] = None
_sessions: Dict[str, SessionController] = {}
_sessions_lock = threading.Lock()


def create_store(backend: str = None) -> CompetitionStore:
    """Tạo store theo config"""
    backend = backend or STORE_BACKEND
    if backend == "memory":
        return InMemoryCompetitionStore()
    if backend == "json":
        return JsonFileCompetitionStore(DATA_FILE)
    if backend == "rest":
        if not REST_URL:
            raise ValueError("QUIZ_REST_URL chưa được cấu hình")
        return RestCompetitionStore(REST_URL, api_key=REST_API_KEY, timeout=REST_TIMEOUT)
    raise ValueError(f"Store backend không hợp lệ: {backend}")


def get_store() -> CompetitionStore:
    """Dependency trả về store (có cache)"""
    global _store_cache

    if _store_cache is None:
        _store_cache = create_store()
    return _store_cache


def set_store(store: CompetitionStore) -> None:
    global _store_cache
    _store_cache = store


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=LEADERBOARD_MAX_RETRIES, base_delay=LEADERBOARD_BASE_DELAY)


def create_leaderboard_loader(store: CompetitionStore,
                              retry_policy: RetryPolicy) -> LeaderboardLoader:
    return LeaderboardLoader(
        store,
        retry_policy=retry_policy,
        page_size=LEADERBOARD_PAGE_SIZE,
        limit=LEADERBOARD_LIMIT,
    )


def register_session(controller: SessionController) -> str:
    session_id = uuid.uuid4().hex
    with _sessions_lock:
        _sessions[session_id] = controller
    return session_id


def get_session(session_id: str) -> Optional[SessionController]:
    with _sessions_lock:
        return _sessions.get(session_id)


def drop_session(session_id: str) -> bool:
    with _sessions_lock:
        return _sessions.pop(session_id, None) is not None


def progress_to_response(user_id: str, progress: ProgressView) -> ProgressResponse:
    return ProgressResponse(
        user_id=user_id,
        active_index=progress.active_index,
        total_questions=progress.total_questions,
        completed_count=progress.completed_count,
        progress_percent=progress.progress_percent,
        is_completed=progress.is_completed,
        completed_question_ids=sorted(progress.completed_question_ids),
        outcomes=[
            OutcomeResponse(
                question_id=question_id,
                answer=outcome.answer,
                is_correct=outcome.is_correct,
                timestamp=outcome.timestamp,
            )
            for question_id, outcome in progress.outcomes.items()
        ],
    )


def snapshot_to_fields(session_id: str, snapshot: SessionSnapshot) -> Dict:
    """Các field chung của SessionResponse / SubmitResponse"""
    question = snapshot.current_question
    progress = snapshot.progress
    current_outcome = None
    question_label = None
    if question is not None:
        question_label = f"Question {snapshot.index + 1} of {len(snapshot.questions)}"
        if progress is not None and question.question_id in progress.outcomes:
            outcome = progress.outcomes[question.question_id]
            current_outcome = OutcomeResponse(
                question_id=question.question_id,
                answer=outcome.answer,
                is_correct=outcome.is_correct,
                timestamp=outcome.timestamp,
            )
    # Ở trạng thái Locked không trả về nội dung câu hỏi
    visible = question is not None and snapshot.state != SessionState.LOCKED
    return {
        "session_id": session_id,
        "user_id": snapshot.user_id,
        "state": snapshot.state.value,
        "index": snapshot.index,
        "input_buffer": snapshot.input_buffer,
        "question_label": question_label,
        "current_question": QuestionResponse(
            question_id=question.question_id,
            ordinal=question.ordinal,
            prompt=question.prompt,
        ) if visible else None,
        "current_outcome": current_outcome if visible else None,
        "can_submit": (
            snapshot.state == SessionState.ACTIVE
            and question is not None
            and bool(snapshot.input_buffer)
        ),
        "progress": progress_to_response(snapshot.user_id, progress) if progress else None,
        "error": snapshot.error,
    }


def snapshot_to_response(session_id: str, snapshot: SessionSnapshot) -> SessionResponse:
    return SessionResponse(**snapshot_to_fields(session_id, snapshot))


def error_status_code(error: QuizError) -> int:
    """Map lỗi nghiệp vụ sang HTTP status code"""
    if isinstance(error, ValidationFailure):
        return 400
    if isinstance(error, InvalidTransition):
        return 409
    if isinstance(error, (FetchFailure, SubmitPersistFailure, StoreError,
                          LeaderboardFetchFailure, RetryCancelled)):
        return 503
    return 500


def clear_cache():
    """Clear tất cả cache - dùng cho testing hoặc reload data"""
    global _store_cache

    _store_cache = None
    with _sessions_lock:
        _sessions.clear()
