"""
Models module - Các class định nghĩa dữ liệu
"""

from .question import Question
from .answer_record import AnswerRecord
from .progress_view import Outcome, ProgressView
from .leaderboard_entry import LeaderboardEntry
from .user_identity import UserIdentity, ANONYMOUS_NAME
from .session_state import SessionState, SessionSnapshot
from .errors import (
    QuizError,
    StoreError,
    FetchFailure,
    LeaderboardFetchFailure,
    RetryCancelled,
    SubmitPersistFailure,
    ValidationFailure,
    InvalidTransition,
)

__all__ = [
    'Question',
    'AnswerRecord',
    'Outcome',
    'ProgressView',
    'LeaderboardEntry',
    'UserIdentity',
    'ANONYMOUS_NAME',
    'SessionState',
    'SessionSnapshot',
    'QuizError',
    'StoreError',
    'FetchFailure',
    'LeaderboardFetchFailure',
    'RetryCancelled',
    'SubmitPersistFailure',
    'ValidationFailure',
    'InvalidTransition',
]
