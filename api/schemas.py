"""
API Schemas - Request/Response models
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class QuestionResponse(BaseModel):
    """Schema cho câu hỏi trong response (không trả về đáp án)"""
    question_id: str
    ordinal: int = Field(..., ge=1, description="Thứ tự câu hỏi, bắt đầu từ 1")
    prompt: str


class OutcomeResponse(BaseModel):
    """Kết quả lần nộp gần nhất của một câu"""
    question_id: str
    answer: str
    is_correct: bool
    timestamp: datetime


class ProgressResponse(BaseModel):
    """Progress View của user"""
    user_id: str
    active_index: Optional[int] = Field(
        default=None, description="Index (0-based) câu đang active, None nếu không có câu hỏi"
    )
    total_questions: int
    completed_count: int
    progress_percent: float
    is_completed: bool
    completed_question_ids: List[str]
    outcomes: List[OutcomeResponse]

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "active_index": 3,
                "total_questions": 5,
                "completed_count": 3,
                "progress_percent": 60.0,
                "is_completed": False,
                "completed_question_ids": ["q1", "q2", "q3"],
                "outcomes": [
                    {
                        "question_id": "q4",
                        "answer": ".-.",
                        "is_correct": False,
                        "timestamp": "2026-10-19T10:00:00+00:00",
                    }
                ],
            }
        }


class SessionCreateRequest(BaseModel):
    """Request để bắt đầu một phiên thi"""
    user_id: str = Field(..., min_length=1)


class SymbolRequest(BaseModel):
    """Thêm một ký hiệu morse vào input"""
    symbol: str = Field(..., description="'.' hoặc '-'")


class NavigateRequest(BaseModel):
    """Chuyển tới một câu hỏi"""
    index: int = Field(..., ge=0)


class SessionResponse(BaseModel):
    """Snapshot của phiên thi"""
    session_id: str
    user_id: str
    state: str
    index: int
    input_buffer: str
    question_label: Optional[str] = Field(default=None, description="Ví dụ: 'Question 2 of 5'")
    current_question: Optional[QuestionResponse] = None
    current_outcome: Optional[OutcomeResponse] = None
    can_submit: bool
    progress: Optional[ProgressResponse] = None
    error: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "2f1c0b7e9a1d4c5e8f7a6b5c4d3e2f10",
                "user_id": "user_123",
                "state": "active",
                "index": 1,
                "input_buffer": ".-",
                "question_label": "Question 2 of 5",
                "current_question": {"question_id": "q2", "ordinal": 2, "prompt": "Letter A"},
                "current_outcome": None,
                "can_submit": True,
                "progress": None,
                "error": None,
            }
        }


class SubmitResponse(SessionResponse):
    """Snapshot sau khi nộp, kèm kết quả"""
    is_correct: bool
    message: str


class LeaderboardEntryResponse(BaseModel):
    rank: int = Field(..., ge=1)
    display_name: str
    total_score_percent: float = Field(..., ge=0, le=100)
    total_time_seconds: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntryResponse]
    total_questions: int

    class Config:
        json_schema_extra = {
            "example": {
                "entries": [
                    {
                        "rank": 1,
                        "display_name": "alice",
                        "total_score_percent": 100.0,
                        "total_time_seconds": 42,
                    }
                ],
                "total_questions": 5,
            }
        }


class SolveTimeStats(BaseModel):
    min: float
    max: float
    mean: float
    median: float


class QuestionStatsResponse(BaseModel):
    question_id: str
    ordinal: int
    attempted_users: int
    correct_users: int
    accuracy: float = Field(..., ge=0, le=1)
    solve_time: SolveTimeStats


class OverallStats(BaseModel):
    mean_accuracy: float
    hardest_question_id: Optional[str] = None


class QuestionAnalysisResponse(BaseModel):
    total_questions: int
    total_participants: int
    overall: OverallStats
    questions: List[QuestionStatsResponse]


class ProfileResponse(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    display_label: str

    @field_validator("display_label")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("display_label không được rỗng")
        return value
