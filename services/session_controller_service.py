"""
Session Controller - state machine cho một phiên thi của user

Loading -> Active(index) -> Locked(index) | Completed
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict
from models.answer_record import AnswerRecord
from models.errors import (
    FetchFailure,
    InvalidTransition,
    StoreError,
    SubmitPersistFailure,
    ValidationFailure,
)
from models.session_state import SessionSnapshot, SessionState
from services.progress_engine_service import ProgressEngineService

logger = logging.getLogger(__name__)

MORSE_SYMBOLS = (".", "-")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    """
    Điều phối: submit -> lưu -> tính lại progress -> chuyển câu hoặc làm lại.
    Mọi thay đổi state đều đi qua _transition, mỗi lần tạo một snapshot mới.

    Thời gian làm một câu tính từ lần đầu câu đó được mở trong phiên,
    kể cả các lần nộp sai và các lần chuyển qua lại giữa các câu.
    """

    def __init__(self, store, user_id: str,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self._snapshot = SessionSnapshot(user_id=user_id)
        # Mỗi phiên chỉ xử lý một hành động tại một thời điểm
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def _transition(self, **changes) -> SessionSnapshot:
        self._snapshot = replace(self._snapshot, **changes)
        return self._snapshot

    def _require_state(self, *states: SessionState) -> None:
        if self._snapshot.state not in states:
            raise InvalidTransition(
                f"Không thể thực hiện ở trạng thái {self._snapshot.state.value}"
            )

    def _enter_question(self, index: int) -> Dict:
        """
        Các field cần đổi khi mở câu index: giữ thời điểm bắt đầu cũ nếu câu
        đã được mở trước đó trong phiên, nếu chưa thì bắt đầu tính từ bây giờ.
        """
        snapshot = self._snapshot
        if not 0 <= index < len(snapshot.questions):
            return {"question_started_at": self.clock()}
        question_id = snapshot.questions[index].question_id
        started_at = snapshot.question_starts.get(question_id)
        if started_at is not None:
            return {"question_started_at": started_at}
        started_at = self.clock()
        starts = dict(snapshot.question_starts)
        starts[question_id] = started_at
        return {"question_started_at": started_at, "question_starts": starts}

    def load(self) -> SessionSnapshot:
        """
        Tải câu hỏi + answer log của user và tính progress ban đầu

        Raises:
            FetchFailure: Khi không tải được dữ liệu (session chuyển sang Error)
        """
        with self._lock:
            self._require_state(SessionState.LOADING, SessionState.ERROR)
            user_id = self._snapshot.user_id
            try:
                questions = tuple(ProgressEngineService.order_questions(self.store.list_questions()))
                records = tuple(self.store.fetch_user_answers(user_id))
            except (StoreError, ValueError) as e:
                logger.error("Failed to load questions for user %s: %s", user_id, e)
                self._transition(state=SessionState.ERROR, error="Failed to load questions.")
                raise FetchFailure(f"Failed to load questions: {e}") from e

            progress = ProgressEngineService.build_progress_view(questions, records)
            state = SessionState.COMPLETED if progress.is_completed else SessionState.ACTIVE
            logger.info("Loaded session for user %s: %d/%d completed",
                        user_id, progress.completed_count, progress.total_questions)
            self._transition(
                state=state,
                index=progress.active_index or 0,
                input_buffer="",
                questions=questions,
                records=records,
                progress=progress,
                question_starts={},
                error=None,
            )
            return self._transition(**self._enter_question(self._snapshot.index))

    def append_symbol(self, symbol: str) -> SessionSnapshot:
        with self._lock:
            self._require_state(SessionState.ACTIVE)
            if symbol not in MORSE_SYMBOLS:
                raise ValidationFailure(f"Ký hiệu không hợp lệ: {symbol!r}")
            return self._transition(input_buffer=self._snapshot.input_buffer + symbol)

    def backspace(self) -> SessionSnapshot:
        with self._lock:
            self._require_state(SessionState.ACTIVE)
            if not self._snapshot.input_buffer:
                return self._snapshot
            return self._transition(input_buffer=self._snapshot.input_buffer[:-1])

    def submit(self) -> SessionSnapshot:
        """
        Nộp câu trả lời cho câu hiện tại

        Raises:
            ValidationFailure: Input rỗng (không có I/O)
            SubmitPersistFailure: Lưu thất bại, state giữ nguyên
        """
        with self._lock:
            self._require_state(SessionState.ACTIVE)
            snapshot = self._snapshot
            answer = snapshot.input_buffer.strip()
            if not answer:
                raise ValidationFailure("Please enter a morse code answer")

            question = snapshot.current_question
            if question is None:
                raise InvalidTransition("Không có câu hỏi nào")

            now = self.clock()
            started_at = snapshot.question_started_at or now
            time_taken = max(int((now - started_at).total_seconds()), 0)
            record = AnswerRecord(
                user_id=snapshot.user_id,
                question_id=question.question_id,
                submitted_answer=answer,
                is_correct=question.is_correct_answer(answer),
                time_taken_seconds=time_taken,
                answered_at=now,
            )

            try:
                self.store.upsert_answer(record)
            except StoreError as e:
                logger.error("Failed to save answer for user %s question %s: %s",
                             snapshot.user_id, question.question_id, e)
                raise SubmitPersistFailure("Failed to save answer.") from e

            records = tuple(
                r for r in snapshot.records if r.question_id != record.question_id
            ) + (record,)
            progress = ProgressEngineService.build_progress_view(snapshot.questions, records)

            if not record.is_correct:
                # Giữ nguyên input và thời điểm bắt đầu câu hỏi
                return self._transition(records=records, progress=progress)

            if snapshot.is_last_question:
                logger.info("User %s completed all questions", snapshot.user_id)
                return self._transition(
                    state=SessionState.COMPLETED,
                    records=records,
                    progress=progress,
                )

            self._transition(
                index=snapshot.index + 1,
                input_buffer="",
                records=records,
                progress=progress,
            )
            return self._transition(**self._enter_question(snapshot.index + 1))

    def navigate(self, index: int) -> SessionSnapshot:
        """
        Chuyển tới câu hỏi index. Nếu câu hỏi chưa được mở khóa thì vào Locked.
        Chuyển về câu đang làm thì giữ nguyên input.
        """
        with self._lock:
            self._require_state(SessionState.ACTIVE, SessionState.LOCKED, SessionState.COMPLETED)
            snapshot = self._snapshot
            if not 0 <= index < len(snapshot.questions):
                raise ValidationFailure(f"Index ngoài phạm vi: {index}")

            if not ProgressEngineService.can_access_index(
                    index, snapshot.questions, snapshot.progress.outcomes):
                return self._transition(state=SessionState.LOCKED, index=index, input_buffer="")

            if snapshot.state == SessionState.ACTIVE and index == snapshot.index:
                return snapshot

            self._transition(state=SessionState.ACTIVE, index=index, input_buffer="")
            return self._transition(**self._enter_question(index))

    def go_back(self) -> SessionSnapshot:
        """Từ Locked lùi về câu gần nhất có thể truy cập"""
        with self._lock:
            self._require_state(SessionState.LOCKED)
            snapshot = self._snapshot
            index = ProgressEngineService.nearest_accessible_index(
                snapshot.index, snapshot.questions, snapshot.progress.outcomes,
            )
            self._transition(state=SessionState.ACTIVE, index=index, input_buffer="")
            return self._transition(**self._enter_question(index))
