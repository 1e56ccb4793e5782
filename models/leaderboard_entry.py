"""
LeaderboardEntry Model
"""

from dataclasses import dataclass

@dataclass(frozen=True)
class LeaderboardEntry:
    """Một dòng trên bảng xếp hạng"""
    rank: int
    user_id: str
    display_name: str
    total_score_percent: float
    total_time_seconds: int
    correct_count: int
