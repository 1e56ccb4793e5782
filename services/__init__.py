"""
Services module - Business logic
"""

from .answer_log_loader_service import AnswerLogLoaderService
from .progress_engine_service import ProgressEngineService
from .retry_policy import RetryPolicy
from .scoring_service import ScoringService, LeaderboardLoader
from .session_controller_service import SessionController
from .analysis_service import AnalysisService

__all__ = [
    'AnswerLogLoaderService',
    'ProgressEngineService',
    'RetryPolicy',
    'ScoringService',
    'LeaderboardLoader',
    'SessionController',
    'AnalysisService'
]
