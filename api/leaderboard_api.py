"""
Leaderboard API endpoints
"""

from fastapi import APIRouter, HTTPException, Depends
from api.schemas import LeaderboardEntryResponse, LeaderboardResponse, ProfileResponse
from api.shared import create_leaderboard_loader, error_status_code, get_retry_policy, get_store
from models.errors import QuizError, StoreError
from services.retry_policy import RetryPolicy
from stores.base_store import CompetitionStore

router = APIRouter(prefix="/api", tags=["Leaderboard"])


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Top người chơi theo % câu đúng và tổng thời gian",
)
def get_leaderboard(
    store: CompetitionStore = Depends(get_store),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Bảng xếp hạng là snapshot tại thời điểm gọi.
    Lỗi đọc store được retry với backoff 1s/2s/4s trước khi trả về 503.
    """
    loader = create_leaderboard_loader(store, retry_policy)
    try:
        entries = loader.load()
    except QuizError as e:
        raise HTTPException(status_code=error_status_code(e), detail=str(e))
    finally:
        loader.close()

    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(
                rank=entry.rank,
                display_name=entry.display_name,
                total_score_percent=entry.total_score_percent,
                total_time_seconds=entry.total_time_seconds,
            )
            for entry in entries
        ],
        total_questions=loader.total_questions,
    )


@router.get("/users/{user_id}/profile", response_model=ProfileResponse)
def get_profile(
    user_id: str,
    store: CompetitionStore = Depends(get_store),
):
    """Tên hiển thị: display_name -> email -> Anonymous"""
    try:
        identity = store.get_identity(user_id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to load profile: {e}")
    if identity is None:
        raise HTTPException(status_code=404, detail=f"Không tìm thấy user: {user_id}")
    return ProfileResponse(
        user_id=identity.user_id,
        display_name=identity.display_name,
        email=identity.email,
        display_label=identity.display_label,
    )
