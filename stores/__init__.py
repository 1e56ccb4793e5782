"""
Stores module - Nguồn dữ liệu câu hỏi, answer log và profile
"""

from .base_store import CompetitionStore
from .memory_store import InMemoryCompetitionStore
from .json_file_store import JsonFileCompetitionStore
from .rest_store import RestCompetitionStore

__all__ = [
    'CompetitionStore',
    'InMemoryCompetitionStore',
    'JsonFileCompetitionStore',
    'RestCompetitionStore',
]
