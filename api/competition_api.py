"""
Competition API endpoints
API cho phiên thi tuần tự: tải tiến độ, nhập morse, nộp câu trả lời, chuyển câu
"""

from fastapi import APIRouter, HTTPException, Depends
from api.schemas import (
    NavigateRequest,
    ProgressResponse,
    SessionCreateRequest,
    SessionResponse,
    SubmitResponse,
    SymbolRequest,
)
from api.shared import (
    drop_session,
    error_status_code,
    get_session,
    get_store,
    progress_to_response,
    register_session,
    snapshot_to_fields,
    snapshot_to_response,
)
from models.errors import QuizError, StoreError
from models.session_state import SessionState
from services.progress_engine_service import ProgressEngineService
from services.session_controller_service import SessionController
from stores.base_store import CompetitionStore

router = APIRouter(prefix="/api/competition", tags=["Competition"])


def _get_controller(session_id: str) -> SessionController:
    controller = get_session(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Không tìm thấy session: {session_id}")
    return controller


@router.post(
    "/sessions",
    response_model=SessionResponse,
    summary="Bắt đầu phiên thi: tải câu hỏi + tiến độ của user",
)
def create_session(
    request: SessionCreateRequest,
    store: CompetitionStore = Depends(get_store),
):
    """
    Loading -> Active(index) hoặc Completed.
    Index ban đầu là câu đầu tiên user chưa trả lời đúng.
    """
    controller = SessionController(store, request.user_id)
    try:
        snapshot = controller.load()
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))
    session_id = register_session(controller)
    return snapshot_to_response(session_id, snapshot)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session_snapshot(session_id: str):
    controller = _get_controller(session_id)
    return snapshot_to_response(session_id, controller.snapshot)


@router.delete("/sessions/{session_id}")
def close_session(session_id: str):
    if not drop_session(session_id):
        raise HTTPException(status_code=404, detail=f"Không tìm thấy session: {session_id}")
    return {"success": True}


@router.post("/sessions/{session_id}/input", response_model=SessionResponse)
def append_symbol(session_id: str, request: SymbolRequest):
    """Thêm '.' hoặc '-' vào input"""
    controller = _get_controller(session_id)
    try:
        snapshot = controller.append_symbol(request.symbol)
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))
    return snapshot_to_response(session_id, snapshot)


@router.post("/sessions/{session_id}/backspace", response_model=SessionResponse)
def backspace(session_id: str):
    controller = _get_controller(session_id)
    try:
        snapshot = controller.backspace()
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))
    return snapshot_to_response(session_id, snapshot)


@router.post(
    "/sessions/{session_id}/submit",
    response_model=SubmitResponse,
    summary="Nộp câu trả lời cho câu hiện tại",
)
def submit_answer(session_id: str):
    """
    - Đúng: chuyển sang câu tiếp theo (hoặc Completed nếu là câu cuối)
    - Sai: giữ nguyên câu và input để user sửa rồi nộp lại
    - Lỗi lưu: state không đổi, user có thể nộp lại
    """
    controller = _get_controller(session_id)
    try:
        snapshot = controller.submit()
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))

    # Bản ghi vừa lưu luôn nằm cuối snapshot.records
    record = snapshot.records[-1]
    ordinal = next(
        q.ordinal for q in snapshot.questions if q.question_id == record.question_id
    )
    if not record.is_correct:
        message = "Please try again. You must answer correctly to proceed."
    elif snapshot.state == SessionState.COMPLETED:
        message = "You have completed all questions successfully!"
    else:
        message = f"Question {ordinal} completed. Moving to next question."

    return SubmitResponse(
        **snapshot_to_fields(session_id, snapshot),
        is_correct=record.is_correct,
        message=message,
    )


@router.post("/sessions/{session_id}/navigate", response_model=SessionResponse)
def navigate(session_id: str, request: NavigateRequest):
    """Chuyển tới câu index; nếu câu trước chưa đúng thì phiên vào trạng thái locked"""
    controller = _get_controller(session_id)
    try:
        snapshot = controller.navigate(request.index)
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))
    return snapshot_to_response(session_id, snapshot)


@router.post("/sessions/{session_id}/go-back", response_model=SessionResponse)
def go_back(session_id: str):
    controller = _get_controller(session_id)
    try:
        snapshot = controller.go_back()
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))
    return snapshot_to_response(session_id, snapshot)


@router.get(
    "/users/{user_id}/progress",
    response_model=ProgressResponse,
    summary="Progress View của user, tính lại từ answer log",
)
def get_user_progress(
    user_id: str,
    store: CompetitionStore = Depends(get_store),
):
    try:
        questions = ProgressEngineService.order_questions(store.list_questions())
        records = store.fetch_user_answers(user_id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to load progress: {e}")
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Lỗi dữ liệu câu hỏi: {str(e)}")

    progress = ProgressEngineService.build_progress_view(questions, records)
    return progress_to_response(user_id, progress)
