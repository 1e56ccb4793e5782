"""
Analysis API endpoints
API thống kê câu hỏi từ answer log
"""

from fastapi import APIRouter, HTTPException, Depends
from api.schemas import QuestionAnalysisResponse
from api.shared import LEADERBOARD_PAGE_SIZE, get_store
from models.errors import StoreError
from services.analysis_service import AnalysisService
from services.answer_log_loader_service import AnswerLogLoaderService
from services.progress_engine_service import ProgressEngineService
from stores.base_store import CompetitionStore

router = APIRouter(prefix="/api/analysis", tags=["Analysis"])


@router.get("/questions", response_model=QuestionAnalysisResponse)
def analyze_questions(store: CompetitionStore = Depends(get_store)):
    """
    Thống kê từng câu hỏi: số user đã làm, số user đúng, tỉ lệ đúng,
    thời gian giải (chỉ tính các câu trả lời đúng)
    """
    try:
        questions = ProgressEngineService.order_questions(store.list_questions())
        answers = AnswerLogLoaderService.fetch_all_answers(
            store, only_correct=False, page_size=LEADERBOARD_PAGE_SIZE,
        )
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to load answer log: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Lỗi khi phân tích câu hỏi: {str(e)}")

    return AnalysisService.analyze_questions(questions, answers)
